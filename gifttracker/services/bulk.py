"""
Bulk gift updates.

A sparse set of fields is applied uniformly to every selected gift. Gifts are
updated one after another with their own commits; there is no rollback across
gifts, and failures are reported together once every gift has been attempted.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from gifttracker.core.config import settings
from gifttracker.core.errors import NotFoundError, PartialBatchError, ValidationError, WriteError
from gifttracker.schemas.gift import BulkGiftUpdate
from gifttracker.services.gifts import load_gift, sync_recipients
from gifttracker.services.lifecycle import derive_status, unique_ids
from gifttracker.services.persistence import commit_or_raise, ensure_profiles_exist

logger = logging.getLogger("gifttracker.bulk")

BULK_FIELDS = ("recipient_ids", "purchaser_id", "is_santa", "return_status", "claimed_by_id")


async def bulk_update_gifts(db: AsyncSession, payload: BulkGiftUpdate) -> list[str]:
    """
    Apply ``payload`` to every gift in ``payload.gift_ids`` and return the ids fully updated.

    ``recipient_ids`` replaces the recipient set of every selected gift with the
    same set, whatever each gift had before. Status is re-derived whenever the
    Santa flag or the claimer is part of the batch.
    """
    fields = [name for name in BULK_FIELDS if name in payload.model_fields_set]
    # is_santa / return_status / recipient_ids cannot be cleared, so null means "leave as is".
    fields = [
        name
        for name in fields
        if name in ("purchaser_id", "claimed_by_id") or getattr(payload, name) is not None
    ]
    if not fields:
        raise ValidationError("No fields to update")

    gift_ids = unique_ids(payload.gift_ids)
    if len(gift_ids) > settings.max_bulk_gifts:
        raise ValidationError(
            f"Too many gifts in one bulk update ({len(gift_ids)} > {settings.max_bulk_gifts})"
        )

    recipient_ids: list[str] | None = None
    if "recipient_ids" in fields:
        recipient_ids = unique_ids(payload.recipient_ids)
        if not recipient_ids:
            raise ValidationError("At least one recipient is required")
        await ensure_profiles_exist(db, recipient_ids, "recipient_ids")
    if "purchaser_id" in fields:
        await ensure_profiles_exist(db, [payload.purchaser_id], "purchaser_id")
    if "claimed_by_id" in fields:
        await ensure_profiles_exist(db, [payload.claimed_by_id], "claimed_by_id")

    updated: list[str] = []
    failures: list[dict[str, str]] = []
    for gift_id in gift_ids:
        try:
            await _apply_to_gift(db, gift_id, payload, fields, recipient_ids)
        except (NotFoundError, WriteError) as exc:
            logger.warning("Bulk update failed gift_id=%s error=%s", gift_id, exc.message)
            failures.append({"gift_id": gift_id, "error": exc.message})
            continue
        updated.append(gift_id)

    logger.info(
        "Bulk update finished fields=%s updated=%s failed=%s",
        fields,
        len(updated),
        len(failures),
    )
    if failures:
        raise PartialBatchError(
            f"{len(failures)} of {len(gift_ids)} gifts could not be updated",
            completed=updated,
            failures=failures,
        )
    return updated


async def _apply_to_gift(
    db: AsyncSession,
    gift_id: str,
    payload: BulkGiftUpdate,
    fields: list[str],
    recipient_ids: list[str] | None,
) -> None:
    gift = await load_gift(db, gift_id)
    current_recipient_ids = list(gift.recipient_ids)

    if "purchaser_id" in fields:
        gift.purchaser_id = payload.purchaser_id
    if "return_status" in fields:
        gift.return_status = payload.return_status.value
    if "is_santa" in fields:
        gift.is_santa = payload.is_santa
    if "claimed_by_id" in fields:
        gift.claimed_by_id = payload.claimed_by_id
    if "is_santa" in fields or "claimed_by_id" in fields:
        gift.status = derive_status(gift.is_santa, gift.claimed_by_id)
    await commit_or_raise(db, f"updating gift {gift_id}")

    if recipient_ids is not None:
        await sync_recipients(db, gift_id, current_recipient_ids, recipient_ids)
