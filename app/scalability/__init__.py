"""Scalability layer: per-record distributed locking. No FastAPI."""

from app.scalability.distributed_lock import DistributedLock, InProcessLockBackend, LockBackend

__all__ = [
    "DistributedLock",
    "InProcessLockBackend",
    "LockBackend",
]
