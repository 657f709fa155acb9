from adflow.models.script import Script
from adflow.models.production_requirement import ProductionRequirement
from adflow.models.team_member import TeamMember
from adflow.models.task import Task
from adflow.models.audit_log import AuditLog

__all__ = [
    "Script",
    "ProductionRequirement",
    "TeamMember",
    "Task",
    "AuditLog",
]
