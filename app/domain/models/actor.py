"""Actor model: who is acting on a record. Passed explicitly into every engine call."""

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Legacy role catalogue. Guards match on these values."""

    MAYOR = "MAYOR"
    VICE_MAYOR = "VICE_MAYOR"
    ADMIN = "ADMIN"
    STAFF = "STAFF"
    HEAD = "HEAD"
    CLERK = "CLERK"
    MPDC_OFFICER = "MPDC_OFFICER"
    BUDGET_OFFICER = "BUDGET_OFFICER"
    ACCOUNTANT = "ACCOUNTANT"
    TREASURER = "TREASURER"
    ENGINEERING = "ENGINEERING"
    EVALUATOR = "EVALUATOR"
    DEPT_HEAD = "DEPT_HEAD"
    ADMIN_CLERK = "ADMIN_CLERK"
    RECORDS_OFFICER = "RECORDS_OFFICER"
    RELEASE_OFFICER = "RELEASE_OFFICER"
    SB_MEMBER = "SB_MEMBER"


class JobLevel(str, Enum):
    EXECUTIVE = "EXECUTIVE"  # Mayor, Vice Mayor
    LEGISLATIVE = "LEGISLATIVE"  # SB Members
    DEPT_HEAD = "DEPT_HEAD"
    DIVISION_CHIEF = "DIVISION_CHIEF"
    OFFICER = "OFFICER"
    CLERK = "CLERK"
    ADMIN = "ADMIN"  # IT super admin; no workflow privileges


class Department(str, Enum):
    MAYORS_OFFICE = "Mayor's Office"
    VICE_MAYORS_OFFICE = "Vice Mayor's Office"
    SB_SECRETARIAT = "Sangguniang Bayan"
    MPDC = "MPDC (Planning)"
    TREASURY = "Treasury Office"
    ACCOUNTING = "Accounting Office"
    BUDGET = "Budget Office"
    ENGINEERING = "Engineering Office"
    MENRO = "MENRO"
    MSWDO = "MSWDO"
    MAO = "Agriculture (MAO)"
    RECORDS = "Records Office"
    ADMIN = "IT / Admin"
    BPLO = "BPLO"
    HR = "HR"
    ASSESSOR = "Assessor"
    RECEIVING = "Receiving"


@dataclass(frozen=True)
class ActorSnapshot:
    """
    Value copy of an actor at action time. Stored in audit entries so history
    survives actor deletion or role change.
    """

    actor_id: str
    name: str
    role: Role
    department: Department

    def to_dict(self) -> dict:
        return {
            "actor_id": self.actor_id,
            "name": self.name,
            "role": self.role.value,
            "department": self.department.value,
        }


@dataclass(frozen=True)
class Actor:
    """Authenticated user as supplied by the session layer."""

    id: str
    name: str
    role: Role
    department: Department
    job_level: JobLevel

    def snapshot(self) -> ActorSnapshot:
        return ActorSnapshot(
            actor_id=self.id,
            name=self.name,
            role=self.role,
            department=self.department,
        )
