from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from gifttracker.models.models import ReturnStatusEnum, TransactionTypeEnum


class ReconciliationCreate(BaseModel):
    gifter_id: str
    recipient_id: str
    purchaser_id: str
    amount: float = Field(ge=0)
    transaction_type: TransactionTypeEnum = TransactionTypeEnum.IOU
    notes: str | None = Field(default=None, max_length=1000)

    @field_validator("notes")
    @classmethod
    def _notes_strip(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        return normalized or None


class ReconciliationPublic(BaseModel):
    id: str
    gifter_id: str
    recipient_id: str
    purchaser_id: str
    amount: float
    transaction_type: TransactionTypeEnum
    notes: str | None
    created_at: datetime

    class Config:
        from_attributes = True


class LedgerLinePublic(BaseModel):
    gift_id: str
    name: str
    price: float
    share: float
    return_status: ReturnStatusEnum
    counted: bool


class CounterpartyPublic(BaseModel):
    profile_id: str
    name: str | None = None
    total: float
    returned_count: int
    lines: list[LedgerLinePublic]


class LedgerPublic(BaseModel):
    viewer_id: str
    recipient_ids: list[str]
    owed_by_viewer: list[CounterpartyPublic]
    owed_to_viewer: list[CounterpartyPublic]
    relevant_gift_ids: list[str]
    total_outstanding: float
    total_owed_to_you: float
    net_balance: float
    total_spending: float
