from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class ProfileCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)

    @field_validator("name")
    @classmethod
    def _name_strip(cls, value: str) -> str:
        return value.strip()


class ProfilePublic(BaseModel):
    id: str
    name: str
    created_at: datetime

    class Config:
        from_attributes = True


class ProfileRef(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True
