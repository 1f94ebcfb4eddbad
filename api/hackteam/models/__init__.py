from hackteam.models.event import Event, EventProject, EventRegistration
from hackteam.models.moderation import AdminAuditLog, MentorApplication, SponsorshipInquiry
from hackteam.models.profile import Profile
from hackteam.models.project import Project
from hackteam.models.project_member import ProjectMember
from hackteam.models.team_invite import TeamInvite

__all__ = [
    "AdminAuditLog",
    "Event",
    "EventProject",
    "EventRegistration",
    "MentorApplication",
    "Profile",
    "Project",
    "ProjectMember",
    "SponsorshipInquiry",
    "TeamInvite",
]
