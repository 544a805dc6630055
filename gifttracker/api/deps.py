from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from gifttracker.db.session import get_db


DbSessionDep = Annotated[AsyncSession, Depends(get_db)]


async def get_actor_id(
    x_actor_id: str | None = Header(default=None, alias="X-Actor-Id"),
) -> str | None:
    """The household member acting on this request. Not authenticated."""
    if x_actor_id is None:
        return None
    actor_id = x_actor_id.strip()
    return actor_id or None


ActorIdDep = Annotated[str | None, Depends(get_actor_id)]
