from fastapi import APIRouter, Query, Request, status

from gifttracker.api.deps import ActorIdDep, DbSessionDep
from gifttracker.core.audit import AuditAction, audit_log
from gifttracker.realtime.manager import manager
from gifttracker.schemas.reconciliation import (
    CounterpartyPublic,
    LedgerLinePublic,
    LedgerPublic,
    ReconciliationCreate,
    ReconciliationPublic,
)
from gifttracker.services import reconciliations as reconciliation_service
from gifttracker.services.profiles import profile_names
from gifttracker.services.splitting import CounterpartyBalance

router = APIRouter(prefix="/reconciliations", tags=["reconciliations"])


def _serialize_counterparty(entry: CounterpartyBalance, names: dict[str, str]) -> CounterpartyPublic:
    return CounterpartyPublic(
        profile_id=entry.profile_id,
        name=names.get(entry.profile_id),
        total=round(entry.total, 2),
        returned_count=entry.returned_count,
        lines=[
            LedgerLinePublic(
                gift_id=line.gift_id,
                name=line.name,
                price=line.price,
                share=round(line.share, 2),
                return_status=line.return_status,
                counted=line.counted,
            )
            for line in entry.lines
        ],
    )


@router.get("", response_model=list[ReconciliationPublic])
async def list_reconciliations(
    db: DbSessionDep,
    gifter_id: str | None = None,
    purchaser_id: str | None = None,
    recipient_id: str | None = None,
) -> list[ReconciliationPublic]:
    entries = await reconciliation_service.list_reconciliations(
        db,
        gifter_id=gifter_id,
        purchaser_id=purchaser_id,
        recipient_id=recipient_id,
    )
    return [ReconciliationPublic.model_validate(entry) for entry in entries]


@router.post("", response_model=ReconciliationPublic, status_code=status.HTTP_201_CREATED)
async def add_reconciliation(
    payload: ReconciliationCreate,
    request: Request,
    db: DbSessionDep,
    actor_id: ActorIdDep,
) -> ReconciliationPublic:
    entry = await reconciliation_service.add_reconciliation(db, payload)
    audit_log(
        AuditAction.RECONCILIATION_CREATE,
        request=request,
        actor_id=actor_id,
        details={
            "reconciliation_id": entry.id,
            "gifter_id": entry.gifter_id,
            "purchaser_id": entry.purchaser_id,
            "amount": payload.amount,
        },
    )
    await manager.broadcast("reconciliation_created", "reconciliation", [entry.id])
    return ReconciliationPublic.model_validate(entry)


@router.get("/summary", response_model=LedgerPublic)
async def reconciliation_summary(
    db: DbSessionDep,
    actor_id: ActorIdDep,
    recipient_ids: list[str] | None = Query(default=None),
    viewer_id: str | None = None,
) -> LedgerPublic:
    ledger = await reconciliation_service.compute_ledger(db, viewer_id or actor_id, recipient_ids or [])
    names = await profile_names(db)
    return LedgerPublic(
        viewer_id=ledger.viewer_id,
        recipient_ids=ledger.recipient_ids,
        owed_by_viewer=[_serialize_counterparty(entry, names) for entry in ledger.owed_by_viewer],
        owed_to_viewer=[_serialize_counterparty(entry, names) for entry in ledger.owed_to_viewer],
        relevant_gift_ids=ledger.relevant_gift_ids,
        total_outstanding=round(ledger.total_outstanding, 2),
        total_owed_to_you=round(ledger.total_owed_to_you, 2),
        net_balance=round(ledger.net_balance, 2),
        total_spending=round(ledger.total_spending, 2),
    )
