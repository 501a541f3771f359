# app/infrastructure/database/models.py

from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from app.infrastructure.database.session import Base


class WorkflowRecordRow(Base):
    """Current state of a record. `version` is the compare-and-swap token."""

    __tablename__ = "workflow_records"

    kind = Column(String(16), primary_key=True)
    record_id = Column(String(64), primary_key=True)

    current_stage = Column(String(64), nullable=False)
    custodian_department = Column(String(64), nullable=False, index=True)
    custodian_holder_id = Column(String(64), nullable=True)
    attributes = Column(JSONB, nullable=False, default=dict)
    sealed_attributes = Column(JSONB, nullable=False, default=list)
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class WorkflowAuditEntryRow(Base):
    """Append-only ledger line. `sequence` is the entry's index in the record's history."""

    __tablename__ = "workflow_audit_entries"
    __table_args__ = (
        UniqueConstraint("kind", "record_id", "sequence", name="uq_audit_entry_sequence"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    kind = Column(String(16), nullable=False)
    record_id = Column(String(64), nullable=False, index=True)
    sequence = Column(Integer, nullable=False)

    stage = Column(String(64), nullable=False)
    action = Column(String(32), nullable=False)
    actor = Column(JSONB, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    notes = Column(Text, nullable=True)
