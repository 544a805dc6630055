from fastapi import APIRouter, Request, status

from gifttracker.api.deps import ActorIdDep, DbSessionDep
from gifttracker.core.audit import AuditAction, audit_log
from gifttracker.realtime.manager import manager
from gifttracker.schemas.profile import ProfileCreate, ProfilePublic
from gifttracker.services import profiles as profile_service

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("", response_model=list[ProfilePublic])
async def list_profiles(db: DbSessionDep) -> list[ProfilePublic]:
    profiles = await profile_service.list_profiles(db)
    return [ProfilePublic.model_validate(profile) for profile in profiles]


@router.post("", response_model=ProfilePublic, status_code=status.HTTP_201_CREATED)
async def add_profile(
    payload: ProfileCreate,
    request: Request,
    db: DbSessionDep,
    actor_id: ActorIdDep,
) -> ProfilePublic:
    profile = await profile_service.add_profile(db, payload.name)
    audit_log(AuditAction.PROFILE_CREATE, request=request, actor_id=actor_id, details={"profile_id": profile.id})
    await manager.broadcast("profile_created", "profile", [profile.id])
    return ProfilePublic.model_validate(profile)


@router.delete("/{profile_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_profile(
    profile_id: str,
    request: Request,
    db: DbSessionDep,
    actor_id: ActorIdDep,
) -> None:
    gift_ids = await profile_service.delete_profile(db, profile_id)
    audit_log(
        AuditAction.PROFILE_DELETE,
        request=request,
        actor_id=actor_id,
        details={"profile_id": profile_id, "gift_ids": gift_ids},
    )
    await manager.broadcast("profile_deleted", "profile", [profile_id])
    if gift_ids:
        await manager.broadcast("gift_updated", "gift", gift_ids)
