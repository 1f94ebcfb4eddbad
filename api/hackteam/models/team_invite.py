import uuid
from typing import Optional
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, func, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hackteam.db.base import Base

INVITE_TYPE_DIRECT = "direct"
INVITE_TYPE_LINK = "link"

STATUS_PENDING = "pending"
STATUS_ACCEPTED = "accepted"
STATUS_DECLINED = "declined"
STATUS_REVOKED = "revoked"


PENDING_DIRECT_INDEX = "uq_team_invite_pending_direct"
_PENDING_DIRECT_PREDICATE = text("status = 'pending' AND invite_type = 'direct'")


class TeamInvite(Base):
    """
    Convite para entrar na equipe de um projeto.

    Convites diretos já nascem com o destinatário definido; convites por link
    só recebem destinatário quando alguém reivindica o token. Todo convite nasce
    "pending" e vai para um estado terminal uma única vez.
    """
    __tablename__ = "team_invite"
    __table_args__ = (
        CheckConstraint(
            "invite_type IN ('direct', 'link')",
            name="ck_team_invite_type_valid",
        ),
        CheckConstraint(
            "status IN ('pending', 'accepted', 'declined', 'revoked')",
            name="ck_team_invite_status_valid",
        ),
        # No máximo um convite direto pendente por (projeto, destinatário)
        Index(
            PENDING_DIRECT_INDEX,
            "project_id",
            "recipient_id",
            unique=True,
            postgresql_where=_PENDING_DIRECT_PREDICATE,
            sqlite_where=_PENDING_DIRECT_PREDICATE,
        ),
        Index("ix_team_invite_recipient_status", "recipient_id", "invite_type", "status"),
        Index("ix_team_invite_sender_status", "sender_id", "status"),
        Index("ix_team_invite_project_status", "project_id", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    project_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("project.id"),
        nullable=False
    )

    sender_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profile.id"),
        nullable=False
    )

    recipient_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profile.id"),
        nullable=True
    )

    invite_type: Mapped[str] = mapped_column(String(length=10), nullable=False)

    status: Mapped[str] = mapped_column(
        String(length=20),
        nullable=False,
        default=STATUS_PENDING,
        server_default=STATUS_PENDING,
    )

    token: Mapped[str | None] = mapped_column(String(length=64), nullable=True, unique=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    responded_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )

    # Relationships
    project: Mapped["Project"] = relationship(
        "Project",
        foreign_keys=[project_id],
    )

    sender: Mapped["Profile"] = relationship(
        "Profile",
        foreign_keys=[sender_id],
    )

    recipient: Mapped[Optional["Profile"]] = relationship(
        "Profile",
        foreign_keys=[recipient_id],
    )

    @property
    def is_pending(self) -> bool:
        return self.status == STATUS_PENDING
