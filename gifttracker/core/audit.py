"""Audit logging for household mutations."""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from fastapi import Request


logger = logging.getLogger("gifttracker.audit")


class AuditAction(str, Enum):
    """Audit action types."""
    # Profiles
    PROFILE_CREATE = "profile_create"
    PROFILE_DELETE = "profile_delete"

    # Gift operations
    GIFT_CREATE = "gift_create"
    GIFT_UPDATE = "gift_update"
    GIFT_DELETE = "gift_delete"
    GIFT_RECIPIENT_TOGGLE = "gift_recipient_toggle"
    GIFT_CLAIM = "gift_claim"
    GIFT_UNCLAIM = "gift_unclaim"
    GIFT_RETURN_STATUS = "gift_return_status"
    GIFT_BULK_UPDATE = "gift_bulk_update"

    # Money
    BUDGET_CREATE = "budget_create"
    BUDGET_DELETE = "budget_delete"
    RECONCILIATION_CREATE = "reconciliation_create"

    # Transfer
    DATA_EXPORT = "data_export"
    MASTER_IMPORT = "master_import"


def audit_log(
    action: AuditAction,
    request: Request | None = None,
    actor_id: str | None = None,
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> None:
    """
    Log an audit event.

    Args:
        action: The action being performed
        request: FastAPI request object (for client host, user agent)
        actor_id: Profile id from the X-Actor-Id header, if any
        details: Target ids and other facts about the action
        success: Whether the action was fully applied
    """
    event = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "action": action.value,
        "success": success,
    }

    if actor_id is not None:
        event["actor_id"] = str(actor_id)

    if request:
        client_host = None
        if request.client:
            client_host = request.client.host

        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            client_host = forwarded.split(",")[0].strip()

        event["ip"] = client_host
        event["user_agent"] = request.headers.get("User-Agent", "")[:200]
        event["request_id"] = request.headers.get("X-Request-Id", "")

    if details:
        event["details"] = details

    if success:
        logger.info("AUDIT: %s", event)
    else:
        logger.warning("AUDIT: %s", event)


def audit_gift_action(
    action: AuditAction,
    request: Request,
    actor_id: str | None,
    gift_id: str,
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> None:
    """Log gift operation."""
    event_details: dict[str, Any] = {"gift_id": gift_id}
    if details:
        event_details.update(details)
    audit_log(action, request=request, actor_id=actor_id, details=event_details, success=success)
