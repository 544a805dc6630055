from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gifttracker.schemas.budget import BudgetPublic
from gifttracker.schemas.gift import GiftPublic
from gifttracker.schemas.profile import ProfilePublic
from gifttracker.schemas.reconciliation import ReconciliationPublic


class MasterImportItem(BaseModel):
    # Accepts both snake_case and the camelCase keys of the shared master list.
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1, max_length=255)
    price: float = Field(default=0, ge=0)
    image_url: str | None = Field(default=None, alias="imageUrl")
    recipient_name: str = Field(min_length=1, max_length=120, alias="recipientName")
    is_santa: bool = Field(default=False, alias="isSanta")

    @field_validator("name", "recipient_name")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()

    @field_validator("image_url")
    @classmethod
    def _normalize_url(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        return normalized or None


class MasterImportResult(BaseModel):
    created: int
    skipped: int
    profiles_created: int


class ExportSnapshot(BaseModel):
    profiles: list[ProfilePublic]
    gifts: list[GiftPublic]
    budgets: list[BudgetPublic]
    reconciliations: list[ReconciliationPublic]
    exported_at: datetime
