"""initial schema: profiles, projects, team invites and memberships

Revision ID: 20261019_01
Revises:
Create Date: 2026-10-19 10:00:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "20261019_01"
down_revision = None
branch_labels = None
depends_on = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False)


def upgrade() -> None:
    op.create_table(
        "profile",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("auth_subject", sa.String(length=255), nullable=False),
        sa.Column("username", sa.String(length=30), nullable=True),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="user"),
        sa.Column("allow_invites", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("banned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("banned_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("ban_reason", sa.Text(), nullable=True),
        sa.Column("hidden_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("hidden_by", postgresql.UUID(as_uuid=True), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint("role IN ('user', 'moderator', 'admin')", name="ck_profile_role_valid"),
        sa.ForeignKeyConstraint(["banned_by"], ["profile.id"]),
        sa.ForeignKeyConstraint(["hidden_by"], ["profile.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("auth_subject"),
    )
    op.create_index("ix_profile_username", "profile", ["username"], unique=True)

    op.create_table(
        "project",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("owner_profile_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["owner_profile_id"], ["profile.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )
    op.create_index("ix_project_owner", "project", ["owner_profile_id"])

    op.create_table(
        "team_invite",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("sender_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("recipient_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("invite_type", sa.String(length=10), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("token", sa.String(length=64), nullable=True),
        _timestamp("created_at"),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("invite_type IN ('direct', 'link')", name="ck_team_invite_type_valid"),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'declined', 'revoked')",
            name="ck_team_invite_status_valid",
        ),
        sa.ForeignKeyConstraint(["project_id"], ["project.id"]),
        sa.ForeignKeyConstraint(["sender_id"], ["profile.id"]),
        sa.ForeignKeyConstraint(["recipient_id"], ["profile.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token"),
    )
    # Um convite direto pendente por (projeto, destinatário)
    op.create_index(
        "uq_team_invite_pending_direct",
        "team_invite",
        ["project_id", "recipient_id"],
        unique=True,
        postgresql_where=sa.text("status = 'pending' AND invite_type = 'direct'"),
    )
    op.create_index("ix_team_invite_recipient_status", "team_invite", ["recipient_id", "invite_type", "status"])
    op.create_index("ix_team_invite_sender_status", "team_invite", ["sender_id", "status"])
    op.create_index("ix_team_invite_project_status", "team_invite", ["project_id", "status"])

    op.create_table(
        "project_member",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("profile_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("invite_id", sa.Integer(), nullable=True),
        _timestamp("joined_at"),
        sa.ForeignKeyConstraint(["project_id"], ["project.id"]),
        sa.ForeignKeyConstraint(["profile_id"], ["profile.id"]),
        sa.ForeignKeyConstraint(["invite_id"], ["team_invite.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "uq_project_member_project_profile",
        "project_member",
        ["project_id", "profile_id"],
        unique=True,
    )
    op.create_index("ix_project_member_profile", "project_member", ["profile_id"])

    op.create_table(
        "event",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )

    op.create_table(
        "event_project",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        _timestamp("submitted_at"),
        sa.ForeignKeyConstraint(["event_id"], ["event.id"]),
        sa.ForeignKeyConstraint(["project_id"], ["project.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("event_id", "project_id", name="uq_event_project_event_project"),
    )

    op.create_table(
        "event_registration",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("profile_id", postgresql.UUID(as_uuid=True), nullable=False),
        _timestamp("registered_at"),
        sa.ForeignKeyConstraint(["event_id"], ["event.id"]),
        sa.ForeignKeyConstraint(["profile_id"], ["profile.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("event_id", "profile_id", name="uq_event_registration_event_profile"),
    )

    op.create_table(
        "admin_audit_log",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("actor_profile_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("target_profile_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["actor_profile_id"], ["profile.id"]),
        sa.ForeignKeyConstraint(["target_profile_id"], ["profile.id"]),
        sa.PrimaryKeyConstraint("id"),
    )

    for table_name, name_column in (("mentor_application", "name"), ("sponsorship_inquiry", "company_name")):
        op.create_table(
            table_name,
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column(name_column, sa.String(length=255), nullable=False),
            sa.Column("email", sa.String(length=320), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
            sa.Column("reviewed_by", postgresql.UUID(as_uuid=True), nullable=True),
            sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(["reviewed_by"], ["profile.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("email"),
        )


def downgrade() -> None:
    op.drop_table("sponsorship_inquiry")
    op.drop_table("mentor_application")
    op.drop_table("admin_audit_log")
    op.drop_table("event_registration")
    op.drop_table("event_project")
    op.drop_table("event")
    op.drop_index("ix_project_member_profile", table_name="project_member")
    op.drop_index("uq_project_member_project_profile", table_name="project_member")
    op.drop_table("project_member")
    op.drop_index("ix_team_invite_project_status", table_name="team_invite")
    op.drop_index("ix_team_invite_sender_status", table_name="team_invite")
    op.drop_index("ix_team_invite_recipient_status", table_name="team_invite")
    op.drop_index("uq_team_invite_pending_direct", table_name="team_invite")
    op.drop_table("team_invite")
    op.drop_index("ix_project_owner", table_name="project")
    op.drop_table("project")
    op.drop_index("ix_profile_username", table_name="profile")
    op.drop_table("profile")
