"""Record intake service: opens new records in their kind's initial stage."""

import logging
import uuid
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from app.application.exceptions import DuplicateRecordError
from app.domain.exceptions import InvalidPayloadError, StorageError
from app.domain.models.actor import Actor, Department
from app.domain.models.record import AuditAction, AuditEntry, Custodian, Record
from app.domain.models.stages import RecordKind
from app.domain.schemas.intake import (
    ApplicationIntakeRequest,
    DocumentIntakeRequest,
    VoucherIntakeRequest,
)
from app.workflows.interface import Clock, RecordRepository, SystemClock
from app.workflows.stage_graph import graph_for

ID_PREFIXES: Dict[RecordKind, str] = {
    RecordKind.APPLICATION: "app",
    RecordKind.DOCUMENT: "doc",
    RecordKind.VOUCHER: "v",
}

APPLICATION_INTAKE_DEPARTMENT = Department.BPLO

_Request = TypeVar("_Request", bound=BaseModel)


def new_record_id(kind: RecordKind) -> str:
    return f"{ID_PREFIXES[kind]}-{uuid.uuid4().hex[:12]}"


def _parse(model: Type[_Request], data: Mapping[str, Any]) -> _Request:
    try:
        return model.model_validate(dict(data))
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'request'}: {err['msg']}" for err in e.errors()
        )
        raise InvalidPayloadError(f"Invalid {model.__name__}: {details}") from e


class RecordIntake:
    """
    Creates records with exactly one Created entry by the creating actor.
    After intake, records change only through the transition executor.
    """

    def __init__(
        self,
        repository: RecordRepository,
        *,
        clock: Optional[Clock] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._repository = repository
        self._clock = clock or SystemClock()
        self._logger = logger or logging.getLogger(__name__)

    async def open(self, actor: Actor, kind: RecordKind, data: Mapping[str, Any]) -> Record:
        """Dispatch by kind; used by the HTTP adapter."""
        if kind == RecordKind.APPLICATION:
            return await self.open_application(actor, data)
        if kind == RecordKind.DOCUMENT:
            return await self.open_document(actor, data)
        return await self.open_voucher(actor, data)

    async def open_application(self, actor: Actor, data: Mapping[str, Any]) -> Record:
        """Applications are filed at the BPLO regardless of who encodes them."""
        request = _parse(ApplicationIntakeRequest, data)
        now = self._clock.now()
        attributes = {
            "applicant_name": request.applicant_name,
            "application_type": request.application_type,
            "business_name": request.business_name,
            "reference_number": request.reference_number
            or f"BP-{now.year}-{uuid.uuid4().hex[:6].upper()}",
            "payment_status": "Unpaid",
        }
        return await self._create(
            actor,
            RecordKind.APPLICATION,
            request.record_id,
            Custodian(department=APPLICATION_INTAKE_DEPARTMENT),
            attributes,
            request.notes,
        )

    async def open_document(self, actor: Actor, data: Mapping[str, Any]) -> Record:
        request = _parse(DocumentIntakeRequest, data)
        now = self._clock.now()
        attributes = {
            "title": request.title,
            "doc_type": request.doc_type.value,
            "priority": request.priority.value,
            "tracking_id": request.tracking_id or f"COMM-{int(now.timestamp()) % 1000000:06d}",
            "originating_department": actor.department.value,
        }
        return await self._create(
            actor,
            RecordKind.DOCUMENT,
            request.record_id,
            Custodian(department=actor.department, holder_id=actor.id),
            attributes,
            request.notes,
        )

    async def open_voucher(self, actor: Actor, data: Mapping[str, Any]) -> Record:
        request = _parse(VoucherIntakeRequest, data)
        now = self._clock.now()
        attributes = {
            "payee": request.payee,
            "particulars": request.particulars,
            "amount": request.amount,
            "voucher_type": request.voucher_type.value,
            "ref_number": request.ref_number or f"REF-{int(now.timestamp() * 1000)}",
            "status": "Pending",
            "prepared_by": actor.id,
            "originating_department": actor.department.value,
        }
        return await self._create(
            actor,
            RecordKind.VOUCHER,
            request.record_id,
            Custodian(department=actor.department, holder_id=actor.id),
            attributes,
            request.notes or "Initial Entry",
        )

    async def _create(
        self,
        actor: Actor,
        kind: RecordKind,
        record_id: Optional[str],
        custodian: Custodian,
        attributes: Dict[str, Any],
        notes: Optional[str],
    ) -> Record:
        graph = graph_for(kind)
        stage = graph.initial_stage
        if custodian.department not in graph.custodians_for(stage):
            raise InvalidPayloadError(
                f"{custodian.department.value} cannot open a {kind.value} in stage '{stage.value}'"
            )
        record = Record(
            record_id=record_id or new_record_id(kind),
            kind=kind,
            current_stage=stage,
            custodian=custodian,
            attributes=attributes,
            history=(
                AuditEntry(
                    stage=stage,
                    actor=actor.snapshot(),
                    action=AuditAction.CREATED,
                    timestamp=self._clock.now(),
                    notes=notes,
                ),
            ),
        )
        try:
            created = await self._repository.create(record)
        except DuplicateRecordError as e:
            raise InvalidPayloadError(f"{kind.value.capitalize()} {record.record_id} already exists") from e
        except Exception as e:
            self._logger.error(
                "storage_failure",
                extra={"kind": kind.value, "record_id": record.record_id, "error": str(e)},
            )
            raise StorageError(f"Could not create {kind.value} {record.record_id}: {e}") from e
        self._logger.info(
            "record_created",
            extra={
                "kind": kind.value,
                "record_id": created.record_id,
                "actor_id": actor.id,
                "to_stage": stage.value,
                "custodian": custodian.department.value,
            },
        )
        return created
