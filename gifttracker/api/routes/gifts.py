from fastapi import APIRouter, Query, Request, status

from gifttracker.api.deps import ActorIdDep, DbSessionDep
from gifttracker.core.audit import AuditAction, audit_gift_action, audit_log
from gifttracker.core.errors import PartialBatchError
from gifttracker.models.models import Gift, GiftStatusEnum, ReturnStatusEnum
from gifttracker.realtime.manager import manager
from gifttracker.schemas.gift import (
    BulkGiftUpdate,
    BulkUpdateResult,
    ClaimRequest,
    GiftCreate,
    GiftPublic,
    GiftUpdate,
    RecipientToggle,
    ReturnStatusUpdate,
)
from gifttracker.schemas.profile import ProfileRef
from gifttracker.services import gifts as gift_service
from gifttracker.services.bulk import bulk_update_gifts
from gifttracker.services.splitting import gift_share

router = APIRouter(prefix="/gifts", tags=["gifts"])


def serialize_gift(gift: Gift) -> GiftPublic:
    return GiftPublic(
        id=gift.id,
        name=gift.name,
        price=float(gift.price or 0),
        image_url=gift.image_url,
        gift_type=gift.gift_type,
        is_santa=gift.is_santa,
        status=gift.status,
        purchaser_id=gift.purchaser_id,
        claimed_by_id=gift.claimed_by_id,
        created_by_id=gift.created_by_id,
        return_status=gift.return_status,
        recipients=[
            ProfileRef(id=link.profile.id, name=link.profile.name)
            for link in gift.recipient_links
            if link.profile is not None
        ],
        recipient_ids=gift.recipient_ids,
        tags=gift.tag_names,
        per_recipient_share=round(gift_share(gift), 2),
        created_at=gift.created_at,
        updated_at=gift.updated_at,
    )


@router.get("", response_model=list[GiftPublic])
async def list_gifts(
    db: DbSessionDep,
    santa: bool | None = None,
    search: str | None = None,
    status_filter: GiftStatusEnum | None = Query(default=None, alias="status"),
    recipient_id: str | None = None,
    claimed_by: str | None = None,
    return_status: ReturnStatusEnum | None = None,
    sort: str = "name-asc",
) -> list[GiftPublic]:
    filters = gift_service.GiftFilters(
        santa=santa,
        search=search,
        status=status_filter.value if status_filter else None,
        recipient_id=recipient_id,
        claimed_by=claimed_by,
        return_status=return_status.value if return_status else None,
        sort=sort,
    )
    gifts = await gift_service.list_gifts(db, filters)
    return [serialize_gift(gift) for gift in gifts]


@router.post("/bulk-update", response_model=BulkUpdateResult)
async def bulk_update(
    payload: BulkGiftUpdate,
    request: Request,
    db: DbSessionDep,
    actor_id: ActorIdDep,
) -> BulkUpdateResult:
    try:
        updated_ids = await bulk_update_gifts(db, payload)
    except PartialBatchError as exc:
        audit_log(
            AuditAction.GIFT_BULK_UPDATE,
            request=request,
            actor_id=actor_id,
            details={"gift_ids": exc.completed, "failures": exc.failures},
            success=False,
        )
        if exc.completed:
            await manager.broadcast("gifts_bulk_updated", "gift", exc.completed)
        raise

    audit_log(
        AuditAction.GIFT_BULK_UPDATE,
        request=request,
        actor_id=actor_id,
        details={"gift_ids": updated_ids},
    )
    await manager.broadcast("gifts_bulk_updated", "gift", updated_ids)
    gifts = [await gift_service.load_gift(db, gift_id) for gift_id in updated_ids]
    return BulkUpdateResult(
        updated_ids=updated_ids,
        gifts=[serialize_gift(gift) for gift in gifts],
    )


@router.get("/{gift_id}", response_model=GiftPublic)
async def get_gift(gift_id: str, db: DbSessionDep) -> GiftPublic:
    gift = await gift_service.load_gift(db, gift_id)
    return serialize_gift(gift)


@router.post("", response_model=GiftPublic, status_code=status.HTTP_201_CREATED)
async def add_gift(
    payload: GiftCreate,
    request: Request,
    db: DbSessionDep,
    actor_id: ActorIdDep,
) -> GiftPublic:
    try:
        gift = await gift_service.add_gift(db, payload, actor_id=actor_id)
    except PartialBatchError as exc:
        audit_gift_action(
            AuditAction.GIFT_CREATE,
            request,
            actor_id,
            exc.subject_id,
            details={"failures": exc.failures},
            success=False,
        )
        await manager.broadcast("gift_created", "gift", [exc.subject_id])
        raise

    audit_gift_action(AuditAction.GIFT_CREATE, request, actor_id, gift.id)
    await manager.broadcast("gift_created", "gift", [gift.id])
    return serialize_gift(gift)


@router.put("/{gift_id}", response_model=GiftPublic)
async def update_gift(
    gift_id: str,
    payload: GiftUpdate,
    request: Request,
    db: DbSessionDep,
    actor_id: ActorIdDep,
) -> GiftPublic:
    try:
        gift = await gift_service.update_gift(db, gift_id, payload)
    except PartialBatchError as exc:
        audit_gift_action(
            AuditAction.GIFT_UPDATE,
            request,
            actor_id,
            gift_id,
            details={"failures": exc.failures},
            success=False,
        )
        await manager.broadcast("gift_updated", "gift", [gift_id])
        raise

    audit_gift_action(
        AuditAction.GIFT_UPDATE,
        request,
        actor_id,
        gift_id,
        details={"fields": sorted(payload.model_fields_set)},
    )
    await manager.broadcast("gift_updated", "gift", [gift_id])
    return serialize_gift(gift)


@router.delete("/{gift_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_gift(
    gift_id: str,
    request: Request,
    db: DbSessionDep,
    actor_id: ActorIdDep,
) -> None:
    await gift_service.delete_gift(db, gift_id)
    audit_gift_action(AuditAction.GIFT_DELETE, request, actor_id, gift_id)
    await manager.broadcast("gift_deleted", "gift", [gift_id])


@router.post("/{gift_id}/recipients", response_model=GiftPublic)
async def toggle_recipient(
    gift_id: str,
    payload: RecipientToggle,
    request: Request,
    db: DbSessionDep,
    actor_id: ActorIdDep,
) -> GiftPublic:
    gift = await gift_service.toggle_gift_recipient(db, gift_id, payload.profile_id, payload.is_adding)
    audit_gift_action(
        AuditAction.GIFT_RECIPIENT_TOGGLE,
        request,
        actor_id,
        gift_id,
        details={"profile_id": payload.profile_id, "is_adding": payload.is_adding},
    )
    await manager.broadcast("gift_updated", "gift", [gift_id])
    return serialize_gift(gift)


@router.post("/{gift_id}/claim", response_model=GiftPublic)
async def claim_gift(
    gift_id: str,
    payload: ClaimRequest,
    request: Request,
    db: DbSessionDep,
    actor_id: ActorIdDep,
) -> GiftPublic:
    gift = await gift_service.claim_gift(db, gift_id, payload.claimer_id)
    audit_gift_action(
        AuditAction.GIFT_CLAIM,
        request,
        actor_id,
        gift_id,
        details={"claimer_id": payload.claimer_id},
    )
    await manager.broadcast("gift_updated", "gift", [gift_id])
    return serialize_gift(gift)


@router.post("/{gift_id}/unclaim", response_model=GiftPublic)
async def unclaim_gift(
    gift_id: str,
    request: Request,
    db: DbSessionDep,
    actor_id: ActorIdDep,
) -> GiftPublic:
    gift = await gift_service.unclaim_gift(db, gift_id)
    audit_gift_action(AuditAction.GIFT_UNCLAIM, request, actor_id, gift_id)
    await manager.broadcast("gift_updated", "gift", [gift_id])
    return serialize_gift(gift)


@router.put("/{gift_id}/return-status", response_model=GiftPublic)
async def update_return_status(
    gift_id: str,
    payload: ReturnStatusUpdate,
    request: Request,
    db: DbSessionDep,
    actor_id: ActorIdDep,
) -> GiftPublic:
    gift = await gift_service.update_return_status(db, gift_id, payload.return_status)
    audit_gift_action(
        AuditAction.GIFT_RETURN_STATUS,
        request,
        actor_id,
        gift_id,
        details={"return_status": payload.return_status.value},
    )
    await manager.broadcast("gift_updated", "gift", [gift_id])
    return serialize_gift(gift)
