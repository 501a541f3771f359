"""
Actor resolution from session claims. No FastAPI.

The profile directory is consulted first. A user with a valid session but no profile
gets a synthesized minimal actor so that staff are never locked out; the synthesized
actor carries no extra privilege and still passes through the authorization guard.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from app.core.context import actor_id_ctx
from app.domain.models.actor import Actor, Department, JobLevel, Role
from app.security.exceptions import AuthenticationError
from app.workflows.interface import ProfileDirectory

logger = logging.getLogger(__name__)

FALLBACK_ROLE = Role.STAFF


@dataclass(frozen=True)
class SessionClaims:
    """Identity claims produced by the auth layer."""

    user_id: str
    email: str
    department: Department
    job_level: JobLevel = JobLevel.CLERK

    @classmethod
    def from_raw(
        cls,
        user_id: Optional[str],
        email: Optional[str],
        department: Optional[str],
        job_level: Optional[str] = None,
    ) -> "SessionClaims":
        """Parse header-style string claims. Raises AuthenticationError on missing or unknown values."""
        if not user_id or not user_id.strip():
            raise AuthenticationError("Session claims missing user id")
        if not email or "@" not in email:
            raise AuthenticationError("Session claims missing a valid e-mail")
        if not department:
            raise AuthenticationError("Session claims missing department")
        try:
            dept = Department(department)
        except ValueError:
            raise AuthenticationError(f"Unknown department in session claims: {department}") from None
        try:
            level = JobLevel(job_level) if job_level else JobLevel.CLERK
        except ValueError:
            raise AuthenticationError(f"Unknown job level in session claims: {job_level}") from None
        return cls(user_id=user_id.strip(), email=email.strip(), department=dept, job_level=level)


def synthesize_actor(claims: SessionClaims) -> Actor:
    """Minimal actor for a session without a profile."""
    local_part = claims.email.split("@", 1)[0]
    return Actor(
        id=claims.user_id,
        name=f"Officer {local_part}",
        role=FALLBACK_ROLE,
        department=claims.department,
        job_level=claims.job_level,
    )


async def resolve_actor(claims: SessionClaims, profiles: Optional[ProfileDirectory] = None) -> Actor:
    """Profile lookup with the self-healing fallback."""
    profile = await profiles.get_profile(claims.user_id) if profiles is not None else None
    if profile is not None:
        return profile
    actor = synthesize_actor(claims)
    logger.warning(
        "actor_profile_synthesized",
        extra={
            "actor_id": actor.id,
            "department": actor.department.value,
            "job_level": actor.job_level.value,
        },
    )
    return actor


class ProfileActorResolver:
    """ActorResolver bound to one request's claims."""

    def __init__(self, claims: SessionClaims, profiles: Optional[ProfileDirectory] = None) -> None:
        self._claims = claims
        self._profiles = profiles

    async def current(self) -> Actor:
        actor = await resolve_actor(self._claims, self._profiles)
        actor_id_ctx.set(actor.id)
        return actor
