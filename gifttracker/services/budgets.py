import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gifttracker.core.errors import NotFoundError
from gifttracker.models.models import Budget
from gifttracker.schemas.budget import BudgetCreate
from gifttracker.services.gifts import load_all_gifts
from gifttracker.services.persistence import commit_or_raise, ensure_profiles_exist
from gifttracker.services.splitting import BudgetUsage, compute_budget_usage

logger = logging.getLogger("gifttracker.budgets")


async def list_budgets(db: AsyncSession) -> list[Budget]:
    result = await db.execute(select(Budget).order_by(Budget.created_at.asc()))
    return list(result.scalars())


async def add_budget(db: AsyncSession, payload: BudgetCreate) -> Budget:
    # Several budgets for the same pair are allowed; each is reported on its own.
    await ensure_profiles_exist(db, [payload.gifter_id], "gifter_id")
    await ensure_profiles_exist(db, [payload.recipient_id], "recipient_id")
    budget = Budget(
        gifter_id=payload.gifter_id,
        recipient_id=payload.recipient_id,
        limit_amount=payload.limit_amount,
    )
    db.add(budget)
    await commit_or_raise(db, "creating budget")
    logger.info(
        "Budget created budget_id=%s gifter_id=%s recipient_id=%s",
        budget.id,
        budget.gifter_id,
        budget.recipient_id,
    )
    return budget


async def delete_budget(db: AsyncSession, budget_id: str) -> None:
    result = await db.execute(select(Budget).where(Budget.id == budget_id))
    budget = result.scalar_one_or_none()
    if not budget:
        raise NotFoundError("Budget not found", details={"budget_id": budget_id})
    await db.delete(budget)
    await commit_or_raise(db, "deleting budget")
    logger.info("Budget deleted budget_id=%s", budget_id)


async def budget_summaries(db: AsyncSession) -> list[BudgetUsage]:
    """Spend of every budget, recomputed from the current gifts."""
    budgets = await list_budgets(db)
    if not budgets:
        return []
    gifts = await load_all_gifts(db)
    return [compute_budget_usage(budget, gifts) for budget in budgets]
