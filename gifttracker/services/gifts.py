"""
Gift lifecycle engine.

Every operation takes an ``AsyncSession`` and either returns the refreshed gift
or raises one of the errors in ``gifttracker.core.errors``. Multi-step writes
(create, update) commit step by step; a failure after the first commit leaves
the earlier steps in place and is reported as a ``PartialBatchError``.
"""
from dataclasses import dataclass
from uuid import uuid4
import logging

from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from gifttracker.core.config import settings
from gifttracker.core.errors import NotFoundError, PartialBatchError, ValidationError, WriteError
from gifttracker.models.models import (
    Gift,
    GiftRecipient,
    GiftStatusEnum,
    GiftTag,
    GiftTypeEnum,
    ReturnStatusEnum,
)
from gifttracker.schemas.gift import GiftCreate, GiftUpdate
from gifttracker.services.lifecycle import RecipientDiff, derive_status, diff_recipients, normalize_tags, unique_ids
from gifttracker.services.persistence import (
    commit_or_raise,
    ensure_profiles_exist,
    execute_and_commit,
    profile_exists,
)

logger = logging.getLogger("gifttracker.gifts")

SORT_OPTIONS = {
    "name-asc": (Gift.name.asc(),),
    "name-desc": (Gift.name.desc(),),
    "price-asc": (Gift.price.asc(), Gift.name.asc()),
    "price-desc": (Gift.price.desc(), Gift.name.asc()),
}


@dataclass
class GiftFilters:
    santa: bool | None = None
    search: str | None = None
    status: str | None = None
    recipient_id: str | None = None
    claimed_by: str | None = None
    return_status: str | None = None
    sort: str = "name-asc"


def _gift_query():
    return select(Gift).options(
        selectinload(Gift.recipient_links).selectinload(GiftRecipient.profile),
        selectinload(Gift.tags),
    )


async def load_gift(db: AsyncSession, gift_id: str) -> Gift:
    result = await db.execute(
        _gift_query()
        .where(Gift.id == gift_id)
        .execution_options(populate_existing=True)
    )
    gift = result.scalar_one_or_none()
    if not gift:
        raise NotFoundError("Gift not found", details={"gift_id": gift_id})
    return gift


async def load_all_gifts(db: AsyncSession) -> list[Gift]:
    result = await db.execute(
        _gift_query()
        .order_by(Gift.created_at.asc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().unique())


async def list_gifts(db: AsyncSession, filters: GiftFilters) -> list[Gift]:
    if filters.sort not in SORT_OPTIONS:
        raise ValidationError(
            f"Unknown sort option: {filters.sort}",
            details={"allowed": sorted(SORT_OPTIONS)},
        )

    stmt = _gift_query()
    if filters.santa is not None:
        stmt = stmt.where(Gift.is_santa == filters.santa)
    if filters.search:
        stmt = stmt.where(func.lower(Gift.name).contains(filters.search.strip().lower()))
    if filters.status:
        stmt = stmt.where(Gift.status == filters.status)
    if filters.recipient_id:
        stmt = stmt.where(Gift.recipient_links.any(GiftRecipient.profile_id == filters.recipient_id))
    if filters.claimed_by == "unclaimed":
        stmt = stmt.where(Gift.claimed_by_id.is_(None))
    elif filters.claimed_by:
        stmt = stmt.where(Gift.claimed_by_id == filters.claimed_by)
    if filters.return_status:
        stmt = stmt.where(Gift.return_status == filters.return_status)

    result = await db.execute(
        stmt.order_by(*SORT_OPTIONS[filters.sort]).execution_options(populate_existing=True)
    )
    return list(result.scalars().unique())


async def sync_recipients(
    db: AsyncSession,
    gift_id: str,
    current_ids: list[str],
    desired_ids: list[str],
) -> RecipientDiff:
    """Delete the removed links and insert the added ones as two bulk statements in one commit."""
    diff = diff_recipients(current_ids, desired_ids)
    if diff.is_empty:
        return diff

    statements = []
    if diff.to_remove:
        statements.append(
            (
                delete(GiftRecipient).where(
                    GiftRecipient.gift_id == gift_id,
                    GiftRecipient.profile_id.in_(diff.to_remove),
                ),
                None,
            )
        )
    if diff.to_add:
        statements.append(
            (
                insert(GiftRecipient),
                [{"gift_id": gift_id, "profile_id": pid} for pid in diff.to_add],
            )
        )
    await execute_and_commit(db, "syncing recipients", *statements)
    logger.debug(
        "Recipients synced gift_id=%s added=%s removed=%s",
        gift_id,
        diff.to_add,
        diff.to_remove,
    )
    return diff


async def replace_tags(db: AsyncSession, gift_id: str, tags: list[str]) -> None:
    statements = [(delete(GiftTag).where(GiftTag.gift_id == gift_id), None)]
    if tags:
        statements.append(
            (insert(GiftTag), [{"gift_id": gift_id, "tag": tag} for tag in tags])
        )
    await execute_and_commit(db, "replacing tags", *statements)


def _image_for(gift_type: str, image_url: str | None) -> str | None:
    return image_url if gift_type == GiftTypeEnum.ITEM.value else None


async def add_gift(db: AsyncSession, payload: GiftCreate, actor_id: str | None = None) -> Gift:
    name = (payload.name or "").strip()
    if not name:
        raise ValidationError("Gift name is required")
    if payload.price < 0:
        raise ValidationError("Price must not be negative")
    recipient_ids = unique_ids(payload.recipient_ids)
    if not recipient_ids:
        raise ValidationError("At least one recipient is required")

    await ensure_profiles_exist(db, recipient_ids, "recipient_ids")
    await ensure_profiles_exist(db, [payload.purchaser_id], "purchaser_id")
    await ensure_profiles_exist(db, [payload.claimed_by_id], "claimed_by_id")
    created_by_id = payload.created_by_id
    if created_by_id:
        await ensure_profiles_exist(db, [created_by_id], "created_by_id")
    elif actor_id and await profile_exists(db, actor_id):
        created_by_id = actor_id
    elif actor_id:
        logger.info("Ignoring unknown actor for gift creation actor_id=%s", actor_id)

    gift_id = str(uuid4())
    gift_type = payload.gift_type.value
    tags = normalize_tags(payload.tags or [])
    gift = Gift(
        id=gift_id,
        name=name,
        price=payload.price,
        image_url=_image_for(gift_type, payload.image_url),
        gift_type=gift_type,
        is_santa=payload.is_santa,
        status=derive_status(payload.is_santa, payload.claimed_by_id),
        purchaser_id=payload.purchaser_id,
        claimed_by_id=payload.claimed_by_id,
        created_by_id=created_by_id,
        return_status=payload.return_status.value,
    )

    if settings.atomic_gift_writes:
        gift.recipient_links = [GiftRecipient(profile_id=pid) for pid in recipient_ids]
        gift.tags = [GiftTag(tag=tag) for tag in tags]
        db.add(gift)
        await commit_or_raise(db, "creating gift")
        logger.info("Gift created gift_id=%s recipients=%s atomic=true", gift_id, len(recipient_ids))
        return await load_gift(db, gift_id)

    db.add(gift)
    await commit_or_raise(db, "creating gift")

    completed = ["gift"]
    failures: list[dict[str, str]] = []
    try:
        await execute_and_commit(
            db,
            "adding recipients",
            (insert(GiftRecipient), [{"gift_id": gift_id, "profile_id": pid} for pid in recipient_ids]),
        )
        completed.append("recipients")
    except WriteError as exc:
        failures.append({"step": "recipients", "error": exc.message})

    if tags:
        try:
            await execute_and_commit(
                db,
                "adding tags",
                (insert(GiftTag), [{"gift_id": gift_id, "tag": tag} for tag in tags]),
            )
            completed.append("tags")
        except WriteError as exc:
            failures.append({"step": "tags", "error": exc.message})

    if failures:
        logger.error("Gift created partially gift_id=%s failures=%s", gift_id, failures)
        raise PartialBatchError(
            f"Gift {gift_id} was created but some of its links were not saved",
            completed=completed,
            failures=failures,
            subject_id=gift_id,
        )

    logger.info("Gift created gift_id=%s recipients=%s", gift_id, len(recipient_ids))
    return await load_gift(db, gift_id)


async def update_gift(db: AsyncSession, gift_id: str, payload: GiftUpdate) -> Gift:
    gift = await load_gift(db, gift_id)
    fields = payload.model_fields_set
    current_recipient_ids = list(gift.recipient_ids)

    if "name" in fields and payload.name is not None and not payload.name.strip():
        raise ValidationError("Gift name is required")
    if "price" in fields and payload.price is not None and payload.price < 0:
        raise ValidationError("Price must not be negative")
    desired_recipient_ids: list[str] | None = None
    if "recipient_ids" in fields and payload.recipient_ids is not None:
        desired_recipient_ids = unique_ids(payload.recipient_ids)
        if not desired_recipient_ids:
            raise ValidationError("At least one recipient is required")
        await ensure_profiles_exist(db, desired_recipient_ids, "recipient_ids")
    if "purchaser_id" in fields:
        await ensure_profiles_exist(db, [payload.purchaser_id], "purchaser_id")
    if "claimed_by_id" in fields:
        await ensure_profiles_exist(db, [payload.claimed_by_id], "claimed_by_id")

    is_santa = gift.is_santa
    if "is_santa" in fields and payload.is_santa is not None:
        is_santa = payload.is_santa
    claimed_by_id = payload.claimed_by_id if "claimed_by_id" in fields else gift.claimed_by_id
    # Any supplied status is replaced by the derived one.
    status = derive_status(is_santa, claimed_by_id)

    if payload.name is not None:
        gift.name = payload.name.strip()
    if payload.price is not None:
        gift.price = payload.price
    if payload.gift_type is not None:
        gift.gift_type = payload.gift_type.value
    if "image_url" in fields:
        gift.image_url = payload.image_url
    gift.image_url = _image_for(gift.gift_type, gift.image_url)
    if "purchaser_id" in fields:
        gift.purchaser_id = payload.purchaser_id
    if payload.return_status is not None:
        gift.return_status = payload.return_status.value
    gift.is_santa = is_santa
    gift.claimed_by_id = claimed_by_id
    gift.status = status
    await commit_or_raise(db, "updating gift")

    completed = ["gift"]
    failures: list[dict[str, str]] = []
    if desired_recipient_ids is not None:
        try:
            await sync_recipients(db, gift_id, current_recipient_ids, desired_recipient_ids)
            completed.append("recipients")
        except WriteError as exc:
            failures.append({"step": "recipients", "error": exc.message})

    if "tags" in fields and payload.tags is not None:
        try:
            await replace_tags(db, gift_id, normalize_tags(payload.tags))
            completed.append("tags")
        except WriteError as exc:
            failures.append({"step": "tags", "error": exc.message})

    if failures:
        logger.error("Gift updated partially gift_id=%s failures=%s", gift_id, failures)
        raise PartialBatchError(
            f"Gift {gift_id} was updated but some of its links were not saved",
            completed=completed,
            failures=failures,
            subject_id=gift_id,
        )

    logger.info("Gift updated gift_id=%s fields=%s", gift_id, sorted(fields))
    return await load_gift(db, gift_id)


async def delete_gift(db: AsyncSession, gift_id: str) -> None:
    # Links are loaded with the gift, so the ORM cascade removes them in the same commit.
    gift = await load_gift(db, gift_id)
    await db.delete(gift)
    await commit_or_raise(db, "deleting gift")
    logger.info("Gift deleted gift_id=%s", gift_id)


async def toggle_gift_recipient(
    db: AsyncSession,
    gift_id: str,
    profile_id: str,
    is_adding: bool,
) -> Gift:
    gift = await load_gift(db, gift_id)
    current_ids = list(gift.recipient_ids)
    if is_adding:
        await ensure_profiles_exist(db, [profile_id], "profile_id")
        desired_ids = current_ids + [profile_id]
    else:
        desired_ids = [pid for pid in current_ids if pid != profile_id]
        if not desired_ids:
            raise ValidationError("A gift must keep at least one recipient")

    await sync_recipients(db, gift_id, current_ids, desired_ids)
    return await load_gift(db, gift_id)


async def claim_gift(db: AsyncSession, gift_id: str, claimer_id: str) -> Gift:
    # Last writer wins: an existing claim is overwritten without a check.
    gift = await load_gift(db, gift_id)
    await ensure_profiles_exist(db, [claimer_id], "claimer_id")
    previous = gift.claimed_by_id
    gift.claimed_by_id = claimer_id
    gift.status = GiftStatusEnum.CLAIMED.value
    await commit_or_raise(db, "claiming gift")
    if previous and previous != claimer_id:
        logger.warning(
            "Gift claim overwritten gift_id=%s previous=%s claimer=%s",
            gift_id,
            previous,
            claimer_id,
        )
    return await load_gift(db, gift_id)


async def unclaim_gift(db: AsyncSession, gift_id: str) -> Gift:
    # Always back to available, even for Santa gifts.
    gift = await load_gift(db, gift_id)
    gift.claimed_by_id = None
    gift.status = GiftStatusEnum.AVAILABLE.value
    await commit_or_raise(db, "unclaiming gift")
    return await load_gift(db, gift_id)


async def update_return_status(db: AsyncSession, gift_id: str, return_status: ReturnStatusEnum) -> Gift:
    gift = await load_gift(db, gift_id)
    gift.return_status = ReturnStatusEnum(return_status).value
    await commit_or_raise(db, "updating return status")
    return await load_gift(db, gift_id)
