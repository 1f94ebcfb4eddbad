import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy import or_, select

from hackteam.models.event import EventProject, EventRegistration
from hackteam.models.moderation import AdminAuditLog, MentorApplication, SponsorshipInquiry
from hackteam.models.profile import Profile
from hackteam.models.project import Project
from hackteam.models.project_member import ProjectMember
from hackteam.models.team_invite import TeamInvite
from hackteam.services import audit, cascade, invitations, results
from hackteam.services.identity import CallerIdentity
from hackteam.services.results import FailureKind


async def _join(db, project, owner, profile):
    invite = (await invitations.send_direct_invite(db, project.id, CallerIdentity(owner.id), profile.username)).value
    assert (await invitations.respond_to_invite(db, invite.id, CallerIdentity(profile.id), True)).ok
    return invite


@pytest.fixture
async def world(db, make_profile, make_project, make_event, add_rows):
    """
    `user` é dono de P (dois membros, um convite pendente, convites aceitos),
    membro de Q e destinatário de um convite pendente em R.
    """
    admin = await make_profile("admin", role="admin")
    user = await make_profile("user")
    m1 = await make_profile("m1")
    m2 = await make_profile("m2")
    await make_profile("invitee")
    q_owner = await make_profile("qowner")
    q_member = await make_profile("qmember")
    q_invitee = await make_profile("qinvitee")
    r_owner = await make_profile("rowner")
    troll = await make_profile("troll", banned_at=datetime.now(timezone.utc), banned_by=user.id)

    p = await make_project(user, name="P", slug="p")
    q = await make_project(q_owner, name="Q", slug="q")
    r = await make_project(r_owner, name="R", slug="r")

    await _join(db, p, user, m1)
    link = (await invitations.generate_invite_link(db, p.id, CallerIdentity(user.id))).value
    assert (await invitations.accept_invite_link(db, link.token, CallerIdentity(m2.id))).ok
    assert (await invitations.send_direct_invite(db, p.id, CallerIdentity(user.id), "invitee")).ok

    await _join(db, q, q_owner, user)
    q_member_invite = await _join(db, q, q_owner, q_member)
    assert (await invitations.send_direct_invite(db, q.id, CallerIdentity(q_owner.id), "qinvitee")).ok
    assert (await invitations.send_direct_invite(db, r.id, CallerIdentity(r_owner.id), "user")).ok

    hackathon = await make_event()
    await add_rows(
        EventProject(event_id=hackathon.id, project_id=p.id),
        EventProject(event_id=hackathon.id, project_id=q.id),
        EventRegistration(event_id=hackathon.id, profile_id=user.id),
        EventRegistration(event_id=hackathon.id, profile_id=q_member.id),
        MentorApplication(name="Mentora", email="mentora@example.com", reviewed_by=user.id),
        SponsorshipInquiry(company_name="ACME", email="acme@example.com", reviewed_by=user.id),
        AdminAuditLog(actor_profile_id=user.id, action="ban_profile", target_profile_id=troll.id),
        AdminAuditLog(actor_profile_id=admin.id, action="warn_profile", target_profile_id=user.id),
    )
    return {
        "admin": admin,
        "user": user,
        "troll": troll,
        "q_member": q_member,
        "p": p,
        "q": q,
        "q_member_invite": q_member_invite,
    }


@pytest.mark.anyio
async def test_admin_deletes_account_with_full_cascade(db, world, count_rows, fetch, session_factory):
    user, p, q = world["user"], world["p"], world["q"]

    result = await cascade.delete_account(db, CallerIdentity(world["admin"].id), user.id)

    assert result.ok
    assert result.value.deleted_project_ids == [p.id]

    # P e tudo que dependia dele
    assert await fetch(Project, p.id) is None
    assert await count_rows(ProjectMember, ProjectMember.project_id == p.id) == 0
    assert await count_rows(TeamInvite, TeamInvite.project_id == p.id) == 0
    assert await count_rows(EventProject, EventProject.project_id == p.id) == 0

    # Rastros do usuário em projetos de terceiros
    assert await count_rows(ProjectMember, ProjectMember.profile_id == user.id) == 0
    assert await count_rows(
        TeamInvite,
        or_(TeamInvite.sender_id == user.id, TeamInvite.recipient_id == user.id),
    ) == 0
    assert await count_rows(EventRegistration, EventRegistration.profile_id == user.id) == 0
    assert await fetch(Profile, user.id) is None

    # Q intacto
    assert await fetch(Project, q.id) is not None
    assert await count_rows(
        ProjectMember,
        ProjectMember.project_id == q.id,
        ProjectMember.profile_id == world["q_member"].id,
        ProjectMember.invite_id == world["q_member_invite"].id,
    ) == 1
    assert await count_rows(TeamInvite, TeamInvite.project_id == q.id, TeamInvite.status == "pending") == 1
    assert await count_rows(EventProject, EventProject.project_id == q.id) == 1
    assert await count_rows(EventRegistration) == 1

    # Referências de moderação anuladas, registros preservados
    assert (await fetch(Profile, world["troll"].id)).banned_by is None
    assert await count_rows(MentorApplication, MentorApplication.reviewed_by.is_(None)) == 1
    assert await count_rows(SponsorshipInquiry, SponsorshipInquiry.reviewed_by.is_(None)) == 1
    assert await count_rows(AdminAuditLog, AdminAuditLog.action == "ban_profile", AdminAuditLog.actor_profile_id.is_(None)) == 1
    assert await count_rows(AdminAuditLog, AdminAuditLog.action == "warn_profile", AdminAuditLog.target_profile_id.is_(None)) == 1

    async with session_factory() as session:
        entry = (
            await session.execute(select(AdminAuditLog).where(AdminAuditLog.action == cascade.AUDIT_ACTION_DELETE_ACCOUNT))
        ).scalar_one()
    assert entry.actor_profile_id == world["admin"].id
    assert entry.details["deleted_profile_id"] == str(user.id)
    assert entry.details["username"] == "user"
    assert entry.details["self_service"] is False
    assert entry.details["deleted_projects"] == 1


@pytest.mark.anyio
async def test_user_deletes_own_account(db, world, fetch, session_factory):
    user = world["user"]

    result = await cascade.delete_account(db, CallerIdentity(user.id))

    assert result.ok
    assert await fetch(Profile, user.id) is None
    async with session_factory() as session:
        entry = (
            await session.execute(select(AdminAuditLog).where(AdminAuditLog.action == cascade.AUDIT_ACTION_DELETE_ACCOUNT))
        ).scalar_one()
    assert entry.actor_profile_id is None
    assert entry.details["self_service"] is True


@pytest.mark.anyio
async def test_only_admin_can_delete_other_accounts(db, world, fetch):
    q_member, user = world["q_member"], world["user"]

    denied = await cascade.delete_account(db, CallerIdentity(q_member.id), user.id)
    missing = await cascade.delete_account(db, CallerIdentity(world["admin"].id), uuid.uuid4())

    assert denied.kind is FailureKind.PERMISSION_DENIED
    assert denied.message == results.CANNOT_DELETE_ACCOUNT
    assert missing.kind is FailureKind.NOT_FOUND
    assert await fetch(Profile, user.id) is not None


@pytest.mark.anyio
async def test_cascade_error_rolls_back_everything(db, world, count_rows, fetch, monkeypatch):
    user, p = world["user"], world["p"]
    members_before = await count_rows(ProjectMember)
    invites_before = await count_rows(TeamInvite)
    reported = []

    # Falha no meio da cascata, depois que projetos e participações já foram apagados
    monkeypatch.setattr(cascade, "EventRegistration", None)
    monkeypatch.setattr(cascade, "report_exception", lambda exc, *, action, **extra: reported.append(action))

    result = await cascade.delete_account(db, CallerIdentity(user.id))

    assert result.kind is FailureKind.INTERNAL
    assert reported == ["delete_account"]
    assert await fetch(Profile, user.id) is not None
    assert await fetch(Project, p.id) is not None
    assert await count_rows(ProjectMember) == members_before
    assert await count_rows(TeamInvite) == invites_before


@pytest.mark.anyio
async def test_delete_project_cascades(db, world, count_rows, fetch):
    user, p, q = world["user"], world["p"], world["q"]

    denied = await cascade.delete_project(db, p.id, CallerIdentity(world["q_member"].id))
    missing = await cascade.delete_project(db, 999, CallerIdentity(user.id))
    result = await cascade.delete_project(db, p.id, CallerIdentity(user.id))

    assert denied.kind is FailureKind.PERMISSION_DENIED
    assert missing.kind is FailureKind.NOT_FOUND
    assert result.ok
    assert await fetch(Project, p.id) is None
    assert await count_rows(ProjectMember, ProjectMember.project_id == p.id) == 0
    assert await count_rows(TeamInvite, TeamInvite.project_id == p.id) == 0
    assert await count_rows(EventProject, EventProject.project_id == p.id) == 0
    # O dono continua membro de Q
    assert await count_rows(ProjectMember, ProjectMember.project_id == q.id, ProjectMember.profile_id == user.id) == 1


@pytest.mark.anyio
async def test_audit_failure_is_reported_not_raised(db, monkeypatch):
    reported = []
    monkeypatch.setattr(audit, "report_exception", lambda exc, *, action, **extra: reported.append(action))

    # ator inexistente viola a chave estrangeira
    recorded = await audit.record_audit(
        db,
        actor_profile_id=uuid.uuid4(),
        action="delete_account",
    )

    assert recorded is False
    assert reported == ["audit:delete_account"]
