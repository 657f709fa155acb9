"""Fire-and-forget audit trail for production changes."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from adflow.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


async def log_audit(
    db: AsyncSession,
    *,
    action: str,
    entity_type: str,
    entity_id: int | None = None,
    details: dict | None = None,
) -> None:
    """Stage an audit row in the caller's transaction. Never raises."""
    try:
        db.add(
            AuditLog(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                details=details or None,
            )
        )
        await db.flush()
    except Exception:
        logger.exception("Failed to write audit log: %s %s/%s", action, entity_type, entity_id)
