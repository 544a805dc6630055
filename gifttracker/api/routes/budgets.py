from fastapi import APIRouter, Request, status

from gifttracker.api.deps import ActorIdDep, DbSessionDep
from gifttracker.core.audit import AuditAction, audit_log
from gifttracker.realtime.manager import manager
from gifttracker.schemas.budget import BudgetCreate, BudgetPublic, BudgetSummary
from gifttracker.services import budgets as budget_service
from gifttracker.services.profiles import profile_names
from gifttracker.services.splitting import BudgetUsage

router = APIRouter(prefix="/budgets", tags=["budgets"])


def _serialize_summary(usage: BudgetUsage, names: dict[str, str]) -> BudgetSummary:
    return BudgetSummary(
        id=usage.budget_id,
        gifter_id=usage.gifter_id,
        gifter_name=names.get(usage.gifter_id),
        recipient_id=usage.recipient_id,
        recipient_name=names.get(usage.recipient_id),
        limit_amount=round(usage.limit_amount, 2),
        spent=round(usage.spent, 2),
        percentage=round(usage.percentage, 2),
        is_over_budget=usage.is_over_budget,
        over_by=round(usage.over_by, 2),
        gift_ids=usage.gift_ids,
    )


@router.get("", response_model=list[BudgetSummary])
async def list_budgets(db: DbSessionDep) -> list[BudgetSummary]:
    usages = await budget_service.budget_summaries(db)
    names = await profile_names(db)
    return [_serialize_summary(usage, names) for usage in usages]


@router.post("", response_model=BudgetPublic, status_code=status.HTTP_201_CREATED)
async def add_budget(
    payload: BudgetCreate,
    request: Request,
    db: DbSessionDep,
    actor_id: ActorIdDep,
) -> BudgetPublic:
    budget = await budget_service.add_budget(db, payload)
    audit_log(
        AuditAction.BUDGET_CREATE,
        request=request,
        actor_id=actor_id,
        details={"budget_id": budget.id, "gifter_id": budget.gifter_id, "recipient_id": budget.recipient_id},
    )
    await manager.broadcast("budget_created", "budget", [budget.id])
    return BudgetPublic.model_validate(budget)


@router.delete("/{budget_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_budget(
    budget_id: str,
    request: Request,
    db: DbSessionDep,
    actor_id: ActorIdDep,
) -> None:
    await budget_service.delete_budget(db, budget_id)
    audit_log(AuditAction.BUDGET_DELETE, request=request, actor_id=actor_id, details={"budget_id": budget_id})
    await manager.broadcast("budget_deleted", "budget", [budget_id])
