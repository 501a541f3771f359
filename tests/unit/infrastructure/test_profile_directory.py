"""InMemoryProfileDirectory lookups."""

import pytest

from app.domain.models.actor import Actor, Department, JobLevel, Role
from app.infrastructure.memory.profile_directory import InMemoryProfileDirectory


@pytest.mark.asyncio
async def test_seeded_roster():
    directory = InMemoryProfileDirectory()
    mayor = await directory.get_profile("u_mayor")
    assert mayor.role == Role.MAYOR
    assert mayor.job_level == JobLevel.EXECUTIVE
    assert await directory.get_profile("u_unknown") is None


@pytest.mark.asyncio
async def test_custom_roster_and_add():
    directory = InMemoryProfileDirectory(profiles=[])
    assert await directory.get_profile("u_mayor") is None
    directory.add(Actor("u_hr", "HR Officer", Role.STAFF, Department.HR, JobLevel.OFFICER))
    assert (await directory.get_profile("u_hr")).department == Department.HR
