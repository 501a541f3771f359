"""Kind-bound workflow facades over the engine."""

from app.workflows.facades.application import ApplicationWorkflow
from app.workflows.facades.base import RecordWorkflow
from app.workflows.facades.document import DocumentWorkflow
from app.workflows.facades.voucher import VoucherWorkflow

__all__ = [
    "ApplicationWorkflow",
    "DocumentWorkflow",
    "RecordWorkflow",
    "VoucherWorkflow",
]
