import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hackteam.db.base import Base

MEMBERSHIP_UNIQUE_INDEX = "uq_project_member_project_profile"


class ProjectMember(Base):
    """
    Participação de um perfil na equipe de um projeto.

    O dono do projeto nunca tem linha aqui. O vínculo com o convite de origem
    é anulável para sobreviver à exclusão do convite.
    """
    __tablename__ = "project_member"
    __table_args__ = (
        Index(MEMBERSHIP_UNIQUE_INDEX, "project_id", "profile_id", unique=True),
        Index("ix_project_member_profile", "profile_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    project_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("project.id"),
        nullable=False
    )

    profile_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profile.id"),
        nullable=False
    )

    invite_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("team_invite.id"),
        nullable=True
    )

    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    # Relationships
    profile: Mapped["Profile"] = relationship(
        "Profile",
        foreign_keys=[profile_id],
    )

    project: Mapped["Project"] = relationship(
        "Project",
        foreign_keys=[project_id],
    )
