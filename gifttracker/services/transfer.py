"""
Household data export and the master-list import.

The import walks a flat list of ``{name, price, recipient_name, ...}`` items,
creating missing profiles on the way. Items are independent: one failing item
does not stop the others, and the failures are reported once at the end.
"""
from datetime import datetime, timezone
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from gifttracker.core.errors import GiftTrackerError, PartialBatchError
from gifttracker.models.models import Budget, Gift, GiftTypeEnum, Reconciliation
from gifttracker.schemas.gift import GiftCreate
from gifttracker.schemas.transfer import MasterImportItem, MasterImportResult
from gifttracker.services.gifts import add_gift, load_all_gifts
from gifttracker.services.profiles import add_profile, list_profiles

logger = logging.getLogger("gifttracker.transfer")


async def export_snapshot(db: AsyncSession) -> dict:
    profiles = await list_profiles(db)
    gifts = await load_all_gifts(db)
    budgets = (await db.execute(select(Budget).order_by(Budget.created_at.asc()))).scalars().all()
    reconciliations = (
        await db.execute(select(Reconciliation).order_by(Reconciliation.created_at.asc()))
    ).scalars().all()
    logger.info(
        "Export built profiles=%s gifts=%s budgets=%s reconciliations=%s",
        len(profiles),
        len(gifts),
        len(budgets),
        len(reconciliations),
    )
    return {
        "profiles": profiles,
        "gifts": gifts,
        "budgets": list(budgets),
        "reconciliations": list(reconciliations),
        "exported_at": datetime.now(timezone.utc),
    }


async def _gift_name_exists(db: AsyncSession, name: str) -> bool:
    result = await db.execute(select(func.count()).select_from(Gift).where(Gift.name == name))
    return bool(result.scalar_one())


async def master_import(
    db: AsyncSession,
    items: list[MasterImportItem],
    actor_id: str | None = None,
) -> tuple[MasterImportResult, list[str]]:
    """Import ``items`` and return the counts plus the ids of the gifts created."""
    profiles_by_name = {profile.name.strip().lower(): profile.id for profile in await list_profiles(db)}
    created_ids: list[str] = []
    skipped = 0
    profiles_created = 0
    failures: list[dict[str, str]] = []

    for index, item in enumerate(items):
        try:
            if await _gift_name_exists(db, item.name):
                skipped += 1
                continue

            key = item.recipient_name.lower()
            recipient_id = profiles_by_name.get(key)
            if recipient_id is None:
                profile = await add_profile(db, item.recipient_name)
                recipient_id = profile.id
                profiles_by_name[key] = recipient_id
                profiles_created += 1

            gift = await add_gift(
                db,
                GiftCreate(
                    name=item.name,
                    price=item.price,
                    image_url=item.image_url,
                    recipient_ids=[recipient_id],
                    gift_type=GiftTypeEnum.ITEM,
                    is_santa=item.is_santa,
                ),
                actor_id=actor_id,
            )
            created_ids.append(gift.id)
        except GiftTrackerError as exc:
            logger.warning("Import item failed index=%s name=%s error=%s", index, item.name, exc.message)
            failures.append({"index": str(index), "name": item.name, "error": exc.message})

    result = MasterImportResult(
        created=len(created_ids),
        skipped=skipped,
        profiles_created=profiles_created,
    )
    logger.info(
        "Master import finished created=%s skipped=%s profiles_created=%s failed=%s",
        result.created,
        result.skipped,
        result.profiles_created,
        len(failures),
    )
    if failures:
        raise PartialBatchError(
            f"{len(failures)} of {len(items)} items could not be imported",
            completed=created_ids,
            failures=failures,
        )
    return result, created_ids
