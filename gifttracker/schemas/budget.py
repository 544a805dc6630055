from datetime import datetime

from pydantic import BaseModel, Field


class BudgetCreate(BaseModel):
    gifter_id: str
    recipient_id: str
    limit_amount: float = Field(ge=0)


class BudgetPublic(BaseModel):
    id: str
    gifter_id: str
    recipient_id: str
    limit_amount: float
    created_at: datetime

    class Config:
        from_attributes = True


class BudgetSummary(BaseModel):
    id: str
    gifter_id: str
    gifter_name: str | None = None
    recipient_id: str
    recipient_name: str | None = None
    limit_amount: float
    spent: float
    percentage: float
    is_over_budget: bool
    over_by: float
    gift_ids: list[str] = []
