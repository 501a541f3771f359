"""Security: session claims and actor resolution. No FastAPI."""

from app.security.actor_resolver import (
    ProfileActorResolver,
    SessionClaims,
    resolve_actor,
    synthesize_actor,
)
from app.security.exceptions import AuthenticationError, SecurityError

__all__ = [
    "AuthenticationError",
    "ProfileActorResolver",
    "SecurityError",
    "SessionClaims",
    "resolve_actor",
    "synthesize_actor",
]
