import logging

from sqlalchemy.orm import Session

from taskflow.models import ActivityLog

logger = logging.getLogger(__name__)


def log_activity(
    db: Session,
    *,
    user_id: int,
    action: str,
    entity_type: str,
    entity_id: int,
    workspace_id: int | None = None,
) -> ActivityLog:
    row = ActivityLog(
        workspace_id=workspace_id,
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
    )
    db.add(row)
    logger.debug(
        "activity %s %s#%s",
        action,
        entity_type,
        entity_id,
        extra={"user_id": user_id, "workspace_id": workspace_id},
    )
    return row
