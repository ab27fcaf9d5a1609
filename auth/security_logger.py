"""Security event logging for auth audit trail.

Append-only log in the security_events collection.
Includes log rotation to archive old events to a JSON-lines file.
"""

import json
import logging
from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Any
from uuid import uuid4

from clients.json_store_client import BaseStoreClient, StorageError
from utils.timezone import now_utc, parse_iso

logger = logging.getLogger(__name__)

SECURITY_EVENTS_COLLECTION = "security_events"


class SecurityEvent(Enum):
    """Auth security event types."""

    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    PASSWORD_REHASHED = "password_rehashed"
    SESSION_CREATED = "session_created"
    SESSION_EXPIRED = "session_expired"
    SESSION_REVOKED = "session_revoked"
    SESSIONS_PURGED = "sessions_purged"
    USER_CREATED = "user_created"
    USER_UPDATED = "user_updated"
    USER_DELETED = "user_deleted"
    USER_DEACTIVATED = "user_deactivated"
    USER_ACTIVATED = "user_activated"
    ADMIN_RESET = "admin_reset"


class SecurityLogger:
    """Append-only security event logger with rotation."""

    def __init__(self, store: BaseStoreClient):
        self._store = store

    def log(
        self,
        event: SecurityEvent,
        username: str | None = None,
        user_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Append a security event. A failed write is logged, never raised."""
        entry = {
            "id": str(uuid4()),
            "eventType": event.value,
            "username": username,
            "userId": user_id,
            "details": details,
            "createdAt": now_utc().isoformat(),
        }
        try:
            with self._store.mutate_collection(SECURITY_EVENTS_COLLECTION) as rows:
                rows.append(entry)
        except StorageError as e:
            logger.warning(f"Security event {event.value} not recorded: {e}")

    def get_recent_events(
        self,
        username: str | None = None,
        user_id: str | None = None,
        event_type: SecurityEvent | None = None,
        limit: int = 100,
    ) -> list[dict]:
        """Query recent security events with optional filters, newest first."""
        events = []
        for row in reversed(self._store.read_collection(SECURITY_EVENTS_COLLECTION)):
            if username and row.get("username") != username:
                continue
            if user_id and row.get("userId") != user_id:
                continue
            if event_type and row.get("eventType") != event_type.value:
                continue
            events.append(row)
            if len(events) >= limit:
                break
        return events

    def rotate_logs(self, older_than_days: int, output_path: Path) -> int:
        """Archive old events to file and remove them from the live log.

        Args:
            older_than_days: Archive events older than this many days
            output_path: Path to write JSON lines file (appended)

        Returns:
            Number of events archived and removed
        """
        cutoff = now_utc() - timedelta(days=older_than_days)

        with self._store.mutate_collection(SECURITY_EVENTS_COLLECTION) as rows:
            old = [row for row in rows if parse_iso(row["createdAt"]) < cutoff]
            if not old:
                return 0

            # Archive before dropping so a failed write loses nothing
            with open(output_path, "a", encoding="utf-8") as f:
                for event in old:
                    f.write(json.dumps(event, ensure_ascii=False) + "\n")

            rows[:] = [row for row in rows if parse_iso(row["createdAt"]) >= cutoff]

        return len(old)
