import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gifttracker.core.errors import ValidationError
from gifttracker.models.models import Reconciliation
from gifttracker.schemas.reconciliation import ReconciliationCreate
from gifttracker.services.gifts import load_all_gifts
from gifttracker.services.persistence import commit_or_raise, ensure_profiles_exist
from gifttracker.services.splitting import ReconciliationLedger, build_reconciliation_ledger

logger = logging.getLogger("gifttracker.reconciliations")


async def list_reconciliations(
    db: AsyncSession,
    gifter_id: str | None = None,
    purchaser_id: str | None = None,
    recipient_id: str | None = None,
) -> list[Reconciliation]:
    stmt = select(Reconciliation)
    if gifter_id:
        stmt = stmt.where(Reconciliation.gifter_id == gifter_id)
    if purchaser_id:
        stmt = stmt.where(Reconciliation.purchaser_id == purchaser_id)
    if recipient_id:
        stmt = stmt.where(Reconciliation.recipient_id == recipient_id)
    result = await db.execute(stmt.order_by(Reconciliation.created_at.desc()))
    return list(result.scalars())


async def add_reconciliation(db: AsyncSession, payload: ReconciliationCreate) -> Reconciliation:
    """Append one payment to the log. Entries are never edited or removed afterwards."""
    await ensure_profiles_exist(db, [payload.gifter_id], "gifter_id")
    await ensure_profiles_exist(db, [payload.recipient_id], "recipient_id")
    await ensure_profiles_exist(db, [payload.purchaser_id], "purchaser_id")
    entry = Reconciliation(
        gifter_id=payload.gifter_id,
        recipient_id=payload.recipient_id,
        purchaser_id=payload.purchaser_id,
        amount=payload.amount,
        transaction_type=payload.transaction_type.value,
        notes=payload.notes,
    )
    db.add(entry)
    await commit_or_raise(db, "recording reconciliation")
    logger.info(
        "Reconciliation recorded id=%s gifter_id=%s purchaser_id=%s amount=%s",
        entry.id,
        entry.gifter_id,
        entry.purchaser_id,
        payload.amount,
    )
    return entry


async def compute_ledger(
    db: AsyncSession,
    viewer_id: str | None,
    recipient_ids: list[str],
) -> ReconciliationLedger:
    if not viewer_id:
        raise ValidationError("A viewer is required to compute the ledger")
    gifts = await load_all_gifts(db)
    return build_reconciliation_ledger(gifts, viewer_id, recipient_ids)
