from datetime import datetime, timezone

import pytest

from hackteam.models.project_member import ProjectMember
from hackteam.services.candidate_search import escape_like, search_invite_candidates
from hackteam.services.identity import CallerIdentity
from hackteam.services.results import FailureKind


@pytest.fixture
async def owner_and_project(make_profile, make_project):
    owner = await make_profile("marina")
    project = await make_project(owner, name="Robô Garçom", slug="robo-garcom")
    return owner, project


async def _usernames(db, project, owner, query):
    result = await search_invite_candidates(db, project.id, CallerIdentity(owner.id), query)
    assert result.ok
    return sorted(profile.username for profile in result.value)


@pytest.mark.anyio
async def test_search_matches_username_and_display_name_case_insensitively(db, owner_and_project, make_profile):
    owner, project = owner_and_project
    await make_profile("mariana")
    await make_profile("zeca", display_name="José Marques")
    await make_profile("bob")

    assert await _usernames(db, project, owner, "MAR") == ["mariana", "zeca"]


@pytest.mark.anyio
async def test_search_excludes_ineligible_profiles(db, owner_and_project, make_profile, add_rows):
    owner, project = owner_and_project
    now = datetime.now(timezone.utc)
    eligible = await make_profile("ana")
    member = await make_profile("anabela")
    await make_profile(None, display_name="Ana Sem Username")
    await make_profile("anita", allow_invites=False)
    await make_profile("anastacia", banned_at=now)
    await make_profile("anelise", hidden_at=now)
    await add_rows(ProjectMember(project_id=project.id, profile_id=member.id))

    result = await search_invite_candidates(db, project.id, CallerIdentity(owner.id), "an")

    assert [profile.id for profile in result.value] == [eligible.id]


@pytest.mark.anyio
async def test_search_excludes_the_caller(db, owner_and_project):
    owner, project = owner_and_project

    assert await _usernames(db, project, owner, "marina") == []


@pytest.mark.anyio
@pytest.mark.parametrize("query", ["", " ", "a", " a ", "a" * 101])
async def test_search_ignores_too_short_or_too_long_queries(db, owner_and_project, make_profile, query):
    owner, project = owner_and_project
    await make_profile("aaron")

    assert await _usernames(db, project, owner, query) == []


@pytest.mark.anyio
async def test_search_trims_query(db, owner_and_project, make_profile):
    owner, project = owner_and_project
    await make_profile("bruno")

    assert await _usernames(db, project, owner, "  bru  ") == ["bruno"]


@pytest.mark.anyio
async def test_search_is_capped(db, owner_and_project, make_profile):
    owner, project = owner_and_project
    for index in range(8):
        await make_profile(f"dev{index}")

    assert len(await _usernames(db, project, owner, "dev")) == 5


@pytest.mark.anyio
async def test_search_treats_wildcards_literally(db, owner_and_project, make_profile):
    owner, project = owner_and_project
    await make_profile("a_b")
    await make_profile("axb")
    await make_profile("cem", display_name="Cem % Garantido")

    assert await _usernames(db, project, owner, "a_b") == ["a_b"]
    assert await _usernames(db, project, owner, "%%") == []
    assert await _usernames(db, project, owner, "m %") == ["cem"]


@pytest.mark.anyio
async def test_search_requires_project_owner(db, owner_and_project, make_profile):
    _, project = owner_and_project
    intruder = await make_profile("intruso")

    result = await search_invite_candidates(db, project.id, CallerIdentity(intruder.id), "mar")

    assert result.kind is FailureKind.PERMISSION_DENIED


def test_escape_like():
    assert escape_like("50%_off\\") == "50\\%\\_off\\\\"
