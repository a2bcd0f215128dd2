import json
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import text


def log_engagement_event(
    db,
    user_id: str,
    event_type: str,
    context: dict[str, Any] | None = None,
    created_at: datetime | None = None,
) -> str:
    context = context or {}
    event_id = str(uuid.uuid4())
    db.execute(
        text(
            """
            INSERT INTO learning_events (id, user_id, event_type, context, created_at)
            VALUES (:id, CAST(:user_id AS uuid), :event_type, CAST(:context AS jsonb), COALESCE(:created_at, now()))
            """
        ),
        {
            "id": event_id,
            "user_id": user_id,
            "event_type": event_type,
            "context": json.dumps(context, default=str),
            "created_at": created_at,
        },
    )
    return event_id
