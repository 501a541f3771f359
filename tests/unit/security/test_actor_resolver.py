"""Session claims parsing and actor resolution with the self-healing fallback."""

import pytest

from app.core.context import actor_id_ctx
from app.domain.models.actor import Department, JobLevel, Role
from app.infrastructure.memory.profile_directory import InMemoryProfileDirectory
from app.security.actor_resolver import ProfileActorResolver, SessionClaims, resolve_actor, synthesize_actor
from app.security.exceptions import AuthenticationError


def test_claims_from_headers():
    claims = SessionClaims.from_raw(" u_1 ", "a@talibon.gov.ph", "BPLO", "OFFICER")
    assert claims.user_id == "u_1"
    assert claims.department == Department.BPLO
    assert claims.job_level == JobLevel.OFFICER


def test_claims_default_job_level_is_clerk():
    claims = SessionClaims.from_raw("u_1", "a@talibon.gov.ph", "HR")
    assert claims.job_level == JobLevel.CLERK


@pytest.mark.parametrize(
    "args",
    [
        (None, "a@talibon.gov.ph", "BPLO", None),
        ("u_1", "not-an-email", "BPLO", None),
        ("u_1", "a@talibon.gov.ph", None, None),
        ("u_1", "a@talibon.gov.ph", "Department of Magic", None),
        ("u_1", "a@talibon.gov.ph", "BPLO", "SUPREME"),
    ],
)
def test_incomplete_claims_raise(args):
    with pytest.raises(AuthenticationError):
        SessionClaims.from_raw(*args)


def test_synthesized_actor_is_minimal():
    actor = synthesize_actor(SessionClaims("u_9", "pedro.cruz@talibon.gov.ph", Department.HR, JobLevel.OFFICER))
    assert actor.role == Role.STAFF
    assert actor.name == "Officer pedro.cruz"
    assert actor.department == Department.HR
    assert actor.job_level == JobLevel.OFFICER


@pytest.mark.asyncio
async def test_profile_wins_over_claims():
    claims = SessionClaims("u_treasurer", "treasury@talibon.gov.ph", Department.HR)
    actor = await resolve_actor(claims, InMemoryProfileDirectory())
    assert actor.role == Role.TREASURER
    assert actor.department == Department.TREASURY


@pytest.mark.asyncio
async def test_no_directory_always_synthesizes():
    actor = await resolve_actor(SessionClaims("u_mayor", "mayor@talibon.gov.ph", Department.MAYORS_OFFICE))
    assert actor.role == Role.STAFF


@pytest.mark.asyncio
async def test_resolver_sets_logging_context():
    resolver = ProfileActorResolver(
        SessionClaims("u_records", "records@talibon.gov.ph", Department.RECORDS), InMemoryProfileDirectory()
    )
    actor = await resolver.current()
    assert actor.role == Role.RECORDS_OFFICER
    assert actor_id_ctx.get() == "u_records"
