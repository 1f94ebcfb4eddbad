import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from hackteam.db.base import Base


class Profile(Base):
    """
    Perfil público de um participante.

    A criação do perfil e a autenticação ficam com o provedor externo; aqui só
    interessam os campos usados por convites, busca e moderação.
    """
    __tablename__ = "profile"
    __table_args__ = (
        CheckConstraint(
            "role IN ('user', 'moderator', 'admin')",
            name="ck_profile_role_valid",
        ),
        Index("ix_profile_username", "username", unique=True),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    auth_subject: Mapped[str] = mapped_column(String(length=255), nullable=False, unique=True)
    username: Mapped[str | None] = mapped_column(String(length=30), nullable=True)
    display_name: Mapped[str] = mapped_column(String(length=255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(length=320), nullable=True)
    role: Mapped[str] = mapped_column(String(length=20), nullable=False, default="user")
    allow_invites: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true"
    )

    # Moderação
    banned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    banned_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profile.id"), nullable=True
    )
    ban_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    hidden_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    hidden_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profile.id"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    @property
    def is_visible(self) -> bool:
        return self.banned_at is None and self.hidden_at is None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
