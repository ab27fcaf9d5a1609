"""
Audit trail for administrative changes to users and licenses.

Every create/update/delete of a user or license record is appended to the
audit_log collection. The log is append-only from the application's point
of view and records who made the change and what changed.

Audit writes never decide the outcome of the operation being audited: a
failed write is logged as a warning and the operation still reports its own
result.
"""

import logging
from enum import Enum
from typing import Any
from uuid import uuid4

from clients.json_store_client import BaseStoreClient, StorageError
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

AUDIT_COLLECTION = "audit_log"

# Never copied into the audit log, whatever the entity
REDACTED_FIELDS = {"passwordHash", "passwordSalt", "password_hash", "password_salt"}


class AuditAction(Enum):
    """Type of change made to an entity."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


def redact(data: dict[str, Any]) -> dict[str, Any]:
    """Copy of data without credential fields."""
    return {k: v for k, v in data.items() if k not in REDACTED_FIELDS}


def compute_changes(
    old: dict[str, Any],
    new: dict[str, Any],
    exclude_fields: set[str] | None = None
) -> dict[str, dict[str, Any]]:
    """
    Field-level diff of two stored (camelCase) records.

    Keys present on only one side count as changed. updatedAt is skipped
    unless exclude_fields says otherwise. A changed credential field shows
    up as {"old": "***", "new": "***"}.
    """
    exclude = exclude_fields or {"updatedAt"}
    changes = {}

    all_keys = set(old.keys()) | set(new.keys())
    for key in all_keys:
        if key in exclude:
            continue

        old_val = old.get(key)
        new_val = new.get(key)

        if old_val != new_val:
            if key in REDACTED_FIELDS:
                changes[key] = {"old": "***", "new": "***"}
            else:
                changes[key] = {"old": old_val, "new": new_val}

    return changes


class AuditLogger:
    """
    Audit trail backed by the audit_log collection.

    Pass stored (camelCase JSON) dicts, e.g. record.to_json_dict().

    Usage:
        audit = AuditLogger(store)

        audit.log_change(
            entity_type="license",
            entity_id=license.id,
            action=AuditAction.CREATE,
            changes={"created": license.to_json_dict()},
            user_id=admin.id,
        )

        history = audit.get_entity_history("license", license.id)
    """

    def __init__(self, store: BaseStoreClient):
        self._store = store

    def log_change(
        self,
        entity_type: str,
        entity_id: str,
        action: AuditAction,
        changes: dict[str, Any],
        user_id: str | None = None
    ) -> None:
        """
        Append one entry for a user or license change.

        changes is {"created": snapshot} for CREATE, {"deleted": snapshot}
        for DELETE and the compute_changes() diff for UPDATE. Snapshots are
        redacted before writing. user_id is the acting admin, when known.
        """
        changes = {
            key: redact(value) if isinstance(value, dict) and key in ("created", "deleted") else value
            for key, value in changes.items()
        }
        entry = {
            "id": str(uuid4()),
            "userId": user_id,
            "entityType": entity_type,
            "entityId": entity_id,
            "action": action.value,
            "changes": changes,
            "createdAt": now_utc().isoformat(),
        }
        try:
            with self._store.mutate_collection(AUDIT_COLLECTION) as rows:
                rows.append(entry)
        except StorageError as e:
            logger.warning(f"Audit entry for {entity_type} {entity_id} not written: {e}")

    def get_entity_history(
        self,
        entity_type: str,
        entity_id: str
    ) -> list[dict[str, Any]]:
        """
        Get full audit history for an entity.

        Returns:
            List of audit entries, newest first.
        """
        rows = self._store.read_collection(AUDIT_COLLECTION)
        matches = [
            row for row in rows
            if row.get("entityType") == entity_type and row.get("entityId") == entity_id
        ]
        return list(reversed(matches))

    def get_user_activity(
        self,
        user_id: str,
        limit: int = 100
    ) -> list[dict[str, Any]]:
        """
        Get recent changes made by a user.

        Returns:
            List of audit entries, newest first.
        """
        rows = self._store.read_collection(AUDIT_COLLECTION)
        matches = [row for row in reversed(rows) if row.get("userId") == user_id]
        return matches[:limit]
