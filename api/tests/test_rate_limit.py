import pytest

from hackteam.models.team_invite import TeamInvite
from hackteam.services import invitations, results
from hackteam.services.identity import CallerIdentity
from hackteam.services.rate_limit import count_pending_invites_sent, is_rate_limited
from hackteam.services.results import FailureKind


@pytest.fixture
async def crowd(make_profile, make_project):
    owner = await make_profile("owner")
    users = [await make_profile(f"user{index}") for index in range(1, 7)]
    first = await make_project(owner, name="Primeiro", slug="primeiro")
    second = await make_project(owner, name="Segundo", slug="segundo")
    return owner, users, first, second


async def _fill_to_ceiling(db, owner, users, first, second):
    """Cinco convites pendentes espalhados por dois projetos, diretos e por link."""
    me = CallerIdentity(owner.id)
    invites = []
    for user in users[:3]:
        invites.append((await invitations.send_direct_invite(db, first.id, me, user.username)).value.id)
    invites.append((await invitations.send_direct_invite(db, second.id, me, users[3].username)).value.id)
    invites.append((await invitations.generate_invite_link(db, second.id, me)).value.invite_id)
    return invites


@pytest.mark.anyio
async def test_ceiling_blocks_sixth_invite_until_one_resolves(db, crowd, count_rows):
    owner, users, first, second = crowd
    invite_ids = await _fill_to_ceiling(db, owner, users, first, second)
    me = CallerIdentity(owner.id)

    assert await count_pending_invites_sent(db, owner.id) == 5

    blocked = await invitations.send_direct_invite(db, first.id, me, users[5].username)
    blocked_link = await invitations.generate_invite_link(db, first.id, me)

    assert blocked.kind is FailureKind.RATE_LIMITED
    assert blocked.message == results.rate_limited_message(5)
    assert blocked_link.kind is FailureKind.RATE_LIMITED
    assert await count_rows(TeamInvite) == 5

    assert (await invitations.revoke_invite(db, invite_ids[0], me)).ok

    retried = await invitations.send_direct_invite(db, first.id, me, users[5].username)
    assert retried.ok
    assert await count_rows(TeamInvite, TeamInvite.status == "pending") == 5


@pytest.mark.anyio
async def test_resolved_invites_free_capacity(db, crowd):
    owner, users, first, second = crowd
    invite_ids = await _fill_to_ceiling(db, owner, users, first, second)

    assert (await invitations.respond_to_invite(db, invite_ids[0], CallerIdentity(users[0].id), True)).ok
    assert (await invitations.respond_to_invite(db, invite_ids[1], CallerIdentity(users[1].id), False)).ok

    assert await count_pending_invites_sent(db, owner.id) == 3
    assert not await is_rate_limited(db, owner.id)


@pytest.mark.anyio
async def test_ceiling_is_per_sender(db, crowd, make_profile, make_project):
    owner, users, first, second = crowd
    await _fill_to_ceiling(db, owner, users, first, second)
    other_owner = await make_profile("other")
    other_project = await make_project(other_owner, name="Outro", slug="outro")

    result = await invitations.send_direct_invite(db, other_project.id, CallerIdentity(other_owner.id), "user1")

    assert result.ok
    assert await count_pending_invites_sent(db, other_owner.id) == 1


@pytest.mark.anyio
async def test_is_rate_limited_accepts_explicit_limit(db, crowd):
    owner, users, first, _ = crowd
    await invitations.send_direct_invite(db, first.id, CallerIdentity(owner.id), users[0].username)

    assert await is_rate_limited(db, owner.id, limit=1)
    assert not await is_rate_limited(db, owner.id, limit=2)
