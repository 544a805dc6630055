from fastapi import APIRouter, Request

from gifttracker.api.deps import ActorIdDep, DbSessionDep
from gifttracker.api.routes.gifts import serialize_gift
from gifttracker.core.audit import AuditAction, audit_log
from gifttracker.core.errors import PartialBatchError
from gifttracker.realtime.manager import manager
from gifttracker.schemas.budget import BudgetPublic
from gifttracker.schemas.profile import ProfilePublic
from gifttracker.schemas.reconciliation import ReconciliationPublic
from gifttracker.schemas.transfer import ExportSnapshot, MasterImportItem, MasterImportResult
from gifttracker.services import transfer as transfer_service

router = APIRouter(prefix="/transfer", tags=["transfer"])


@router.get("/export", response_model=ExportSnapshot)
async def export_data(request: Request, db: DbSessionDep, actor_id: ActorIdDep) -> ExportSnapshot:
    snapshot = await transfer_service.export_snapshot(db)
    audit_log(AuditAction.DATA_EXPORT, request=request, actor_id=actor_id)
    return ExportSnapshot(
        profiles=[ProfilePublic.model_validate(profile) for profile in snapshot["profiles"]],
        gifts=[serialize_gift(gift) for gift in snapshot["gifts"]],
        budgets=[BudgetPublic.model_validate(budget) for budget in snapshot["budgets"]],
        reconciliations=[
            ReconciliationPublic.model_validate(entry) for entry in snapshot["reconciliations"]
        ],
        exported_at=snapshot["exported_at"],
    )


@router.post("/master-import", response_model=MasterImportResult)
async def master_import(
    items: list[MasterImportItem],
    request: Request,
    db: DbSessionDep,
    actor_id: ActorIdDep,
) -> MasterImportResult:
    try:
        result, created_ids = await transfer_service.master_import(db, items, actor_id=actor_id)
    except PartialBatchError as exc:
        audit_log(
            AuditAction.MASTER_IMPORT,
            request=request,
            actor_id=actor_id,
            details={"gift_ids": exc.completed, "failures": exc.failures},
            success=False,
        )
        await manager.broadcast("data_imported", "gift", exc.completed)
        raise

    audit_log(
        AuditAction.MASTER_IMPORT,
        request=request,
        actor_id=actor_id,
        details=result.model_dump(),
    )
    await manager.broadcast("data_imported", "gift", created_ids)
    return result
