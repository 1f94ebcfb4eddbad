from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from hackteam.models.project_member import MEMBERSHIP_UNIQUE_INDEX, ProjectMember
from hackteam.models.team_invite import PENDING_DIRECT_INDEX, TeamInvite
from hackteam.services import invitations, membership_store, results
from hackteam.services.identity import CallerIdentity
from hackteam.services.membership_store import DuplicateMembershipError
from hackteam.services.results import FailureKind
from hackteam.utils.db_errors import is_unique_violation


@pytest.fixture
async def team(db, make_profile, make_project):
    owner = await make_profile("owner")
    member = await make_profile("member")
    project = await make_project(owner, name="Robô Garçom", slug="robo-garcom")
    invite = (await invitations.send_direct_invite(db, project.id, CallerIdentity(owner.id), "member")).value
    assert (await invitations.respond_to_invite(db, invite.id, CallerIdentity(member.id), True)).ok
    return owner, member, project


@pytest.mark.anyio
async def test_member_leaves_and_invite_history_stays(db, team, count_rows):
    _, member, project = team

    result = await invitations.leave_project(db, project.id, CallerIdentity(member.id))

    assert result.ok
    assert await count_rows(ProjectMember, ProjectMember.project_id == project.id) == 0
    assert await count_rows(
        TeamInvite,
        TeamInvite.project_id == project.id,
        TeamInvite.status == "accepted",
    ) == 1


@pytest.mark.anyio
async def test_owner_cannot_leave(db, team, count_rows):
    owner, _, project = team

    result = await invitations.leave_project(db, project.id, CallerIdentity(owner.id))

    assert result.kind is FailureKind.PERMISSION_DENIED
    assert result.message == results.OWNER_CANNOT_LEAVE
    assert await count_rows(ProjectMember, ProjectMember.project_id == project.id) == 1


@pytest.mark.anyio
async def test_leave_without_membership_is_not_an_error(db, team, make_profile):
    _, _, project = team
    stranger = await make_profile("stranger")

    assert (await invitations.leave_project(db, project.id, CallerIdentity(stranger.id))).ok
    missing = await invitations.leave_project(db, 999, CallerIdentity(stranger.id))
    assert missing.kind is FailureKind.NOT_FOUND


@pytest.mark.anyio
async def test_remove_team_member(db, team, count_rows):
    owner, member, project = team

    denied = await invitations.remove_team_member(db, project.id, owner.id, CallerIdentity(member.id))
    removed = await invitations.remove_team_member(db, project.id, member.id, CallerIdentity(owner.id))
    again = await invitations.remove_team_member(db, project.id, member.id, CallerIdentity(owner.id))

    assert denied.kind is FailureKind.PERMISSION_DENIED
    assert removed.value == 1
    assert again.ok
    assert again.value == 0
    assert await count_rows(ProjectMember) == 0


@pytest.mark.anyio
async def test_list_project_members_hides_moderated_profiles(db, team, make_profile, add_rows):
    _, member, project = team
    banned = await make_profile("banned", banned_at=datetime.now(timezone.utc))
    hidden = await make_profile("hidden", hidden_at=datetime.now(timezone.utc))
    await add_rows(
        ProjectMember(project_id=project.id, profile_id=banned.id),
        ProjectMember(project_id=project.id, profile_id=hidden.id),
    )

    listed = await invitations.list_project_members(db, project.id)
    missing = await invitations.list_project_members(db, 999)

    assert [profile.username for _, profile in listed.value] == ["member"]
    assert listed.value[0][0].profile_id == member.id
    assert missing.kind is FailureKind.NOT_FOUND


@pytest.mark.anyio
async def test_add_member_raises_on_duplicate(db, team):
    _, member, project = team
    existing = await membership_store.get_membership(db, project.id, member.id)

    with pytest.raises(DuplicateMembershipError):
        await membership_store.add_member(db, project_id=project.id, profile_id=member.id, invite_id=None)

    # nada foi revertido: a instância carregada antes continua legível
    assert existing.profile_id == member.id
    assert existing.invite_id is not None


@pytest.mark.anyio
async def test_unique_indexes_are_enforced_by_the_database(db, team):
    owner, member, project = team

    db.add(ProjectMember(project_id=project.id, profile_id=member.id))
    with pytest.raises(IntegrityError) as membership_error:
        await db.commit()
    await db.rollback()
    assert is_unique_violation(
        membership_error.value,
        MEMBERSHIP_UNIQUE_INDEX,
        "project_member.project_id",
        "project_member.profile_id",
    )

    pending = dict(project_id=project.id, sender_id=owner.id, recipient_id=member.id, invite_type="direct")
    db.add_all([TeamInvite(**pending), TeamInvite(**pending)])
    with pytest.raises(IntegrityError) as invite_error:
        await db.commit()
    await db.rollback()
    assert is_unique_violation(
        invite_error.value,
        PENDING_DIRECT_INDEX,
        "team_invite.project_id",
        "team_invite.recipient_id",
    )

    # O índice é parcial: convites resolvidos não colidem
    db.add_all([TeamInvite(**pending, status="declined"), TeamInvite(**pending, status="declined")])
    await db.commit()
