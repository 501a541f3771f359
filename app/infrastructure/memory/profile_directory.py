"""In-memory staff profile directory, seeded with the municipal staff roster."""

from typing import Dict, Iterable, Optional

from app.domain.models.actor import Actor, Department, JobLevel, Role

DEFAULT_STAFF = (
    Actor("u_mayor", "Hon. Jan-Jan Reyes", Role.MAYOR, Department.MAYORS_OFFICE, JobLevel.EXECUTIVE),
    Actor("u_vm", "Hon. Vice Mayor", Role.VICE_MAYOR, Department.VICE_MAYORS_OFFICE, JobLevel.EXECUTIVE),
    Actor("u_mpdc", "Arch. Planas", Role.MPDC_OFFICER, Department.MPDC, JobLevel.DEPT_HEAD),
    Actor("u_budget", "Mrs. Kuripot", Role.BUDGET_OFFICER, Department.BUDGET, JobLevel.DEPT_HEAD),
    Actor("u_acct", "Mr. Tuos", Role.ACCOUNTANT, Department.ACCOUNTING, JobLevel.DEPT_HEAD),
    Actor("u_treasurer", "Mrs. Yaman", Role.TREASURER, Department.TREASURY, JobLevel.DEPT_HEAD),
    Actor("u_eng", "Engr. Build", Role.ENGINEERING, Department.ENGINEERING, JobLevel.DEPT_HEAD),
    Actor("u_clerk", "Maria Santos", Role.ADMIN_CLERK, Department.MAYORS_OFFICE, JobLevel.CLERK),
    Actor("u_bplo", "Liza Dela Cruz", Role.CLERK, Department.BPLO, JobLevel.CLERK),
    Actor("u_eval", "Engr. Jun Rico", Role.EVALUATOR, Department.ENGINEERING, JobLevel.OFFICER),
    Actor("u_records", "Pedro Penduko", Role.RECORDS_OFFICER, Department.RECORDS, JobLevel.OFFICER),
    Actor("u_admin", "IT Admin", Role.ADMIN, Department.ADMIN, JobLevel.ADMIN),
)


class InMemoryProfileDirectory:
    """ProfileDirectory backed by a dict. Lookups by user id."""

    def __init__(self, profiles: Optional[Iterable[Actor]] = None) -> None:
        self._profiles: Dict[str, Actor] = {
            a.id: a for a in (DEFAULT_STAFF if profiles is None else profiles)
        }

    async def get_profile(self, user_id: str) -> Optional[Actor]:
        return self._profiles.get(user_id)

    def add(self, actor: Actor) -> None:
        self._profiles[actor.id] = actor
