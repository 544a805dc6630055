from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from gifttracker.models.models import GiftStatusEnum, GiftTypeEnum, ReturnStatusEnum
from gifttracker.schemas.profile import ProfileRef


class GiftCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    price: float = Field(default=0, ge=0)
    image_url: str | None = None
    recipient_ids: list[str] = Field(default_factory=list)
    purchaser_id: str | None = None
    created_by_id: str | None = None
    claimed_by_id: str | None = None
    gift_type: GiftTypeEnum = GiftTypeEnum.ITEM
    tags: list[str] | None = None
    is_santa: bool = False
    return_status: ReturnStatusEnum = ReturnStatusEnum.NONE

    @field_validator("name")
    @classmethod
    def _name_strip(cls, value: str) -> str:
        return value.strip()

    @field_validator("image_url")
    @classmethod
    def _normalize_url(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        return normalized or None


class GiftUpdate(BaseModel):
    """Sparse update: only fields present in the request body are applied."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    price: float | None = Field(default=None, ge=0)
    image_url: str | None = None
    recipient_ids: list[str] | None = None
    purchaser_id: str | None = None
    claimed_by_id: str | None = None
    gift_type: GiftTypeEnum | None = None
    tags: list[str] | None = None
    is_santa: bool | None = None
    status: GiftStatusEnum | None = None
    return_status: ReturnStatusEnum | None = None

    @field_validator("name")
    @classmethod
    def _name_strip(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip()

    @field_validator("image_url")
    @classmethod
    def _normalize_url(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        return normalized or None


class BulkGiftUpdate(BaseModel):
    gift_ids: list[str] = Field(min_length=1)
    recipient_ids: list[str] | None = None
    purchaser_id: str | None = None
    is_santa: bool | None = None
    return_status: ReturnStatusEnum | None = None
    claimed_by_id: str | None = None


class ClaimRequest(BaseModel):
    claimer_id: str


class RecipientToggle(BaseModel):
    profile_id: str
    is_adding: bool


class ReturnStatusUpdate(BaseModel):
    return_status: ReturnStatusEnum


class GiftPublic(BaseModel):
    id: str
    name: str
    price: float
    image_url: str | None
    gift_type: GiftTypeEnum
    is_santa: bool
    status: GiftStatusEnum
    purchaser_id: str | None
    claimed_by_id: str | None
    created_by_id: str | None
    return_status: ReturnStatusEnum
    recipients: list[ProfileRef]
    recipient_ids: list[str]
    tags: list[str]
    per_recipient_share: float
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class BulkUpdateResult(BaseModel):
    updated_ids: list[str]
    gifts: list[GiftPublic]
