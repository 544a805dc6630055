import logging

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from gifttracker.core.errors import ValidationError
from gifttracker.models.models import Budget, Gift, GiftRecipient, Profile
from gifttracker.services.lifecycle import derive_status
from gifttracker.services.persistence import commit_or_raise, execute_and_commit, get_profile_or_404

logger = logging.getLogger("gifttracker.profiles")


async def list_profiles(db: AsyncSession) -> list[Profile]:
    result = await db.execute(select(Profile).order_by(Profile.name.asc(), Profile.created_at.asc()))
    return list(result.scalars())


async def add_profile(db: AsyncSession, name: str) -> Profile:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Profile name is required")
    profile = Profile(name=cleaned)
    db.add(profile)
    await commit_or_raise(db, "creating profile")
    logger.info("Profile created profile_id=%s", profile.id)
    return profile


async def find_profile_by_name(db: AsyncSession, name: str) -> Profile | None:
    needle = (name or "").strip().lower()
    if not needle:
        return None
    for profile in await list_profiles(db):
        if profile.name.strip().lower() == needle:
            return profile
    return None


async def delete_profile(db: AsyncSession, profile_id: str) -> list[str]:
    """
    Delete a profile and everything that points at it, as one commit.

    Recipient links and budgets involving the profile are removed. Gifts keep
    existing but lose the profile as purchaser, claimer or creator, and their
    status is re-derived. Reconciliations are left untouched. Returns the ids of
    gifts that changed.
    """
    await get_profile_or_404(db, profile_id)

    linked = await db.execute(
        select(GiftRecipient.gift_id).where(GiftRecipient.profile_id == profile_id)
    )
    affected = {row[0] for row in linked.all()}

    result = await db.execute(
        select(Gift).where(
            or_(
                Gift.purchaser_id == profile_id,
                Gift.claimed_by_id == profile_id,
                Gift.created_by_id == profile_id,
            )
        )
    )
    for gift in result.scalars():
        if gift.purchaser_id == profile_id:
            gift.purchaser_id = None
        if gift.created_by_id == profile_id:
            gift.created_by_id = None
        if gift.claimed_by_id == profile_id:
            gift.claimed_by_id = None
            gift.status = derive_status(gift.is_santa, None)
        affected.add(gift.id)
    await execute_and_commit(
        db,
        "deleting profile",
        (delete(GiftRecipient).where(GiftRecipient.profile_id == profile_id), None),
        (
            delete(Budget).where(or_(Budget.gifter_id == profile_id, Budget.recipient_id == profile_id)),
            None,
        ),
        (delete(Profile).where(Profile.id == profile_id), None),
    )

    logger.info("Profile deleted profile_id=%s gifts_touched=%s", profile_id, len(affected))
    return sorted(affected)


async def profile_names(db: AsyncSession) -> dict[str, str]:
    result = await db.execute(select(Profile.id, Profile.name))
    return {row[0]: row[1] for row in result.all()}
