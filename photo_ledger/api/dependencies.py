from typing import Annotated, AsyncIterator, Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from photo_ledger.core.authorization import Actor
from photo_ledger.core.enums import Role
from photo_ledger.db.session import AsyncSessionLocal
from photo_ledger.exceptions import ForbiddenException


async def get_session() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        yield session


async def get_actor(
    x_actor_id: Annotated[Optional[str], Header()] = None,
    x_actor_role: Annotated[Optional[str], Header()] = None,
) -> Actor:
    """Actor identity as asserted by the gateway; authentication happens upstream."""
    if not x_actor_id or not x_actor_role:
        raise ForbiddenException(
            message="X-Actor-Id and X-Actor-Role headers are required",
            error_code="ACTOR_REQUIRED",
        )
    try:
        role = Role(x_actor_role.lower())
    except ValueError:
        raise ForbiddenException(
            message=f"Unknown actor role: {x_actor_role}",
            error_code="ACTOR_REQUIRED",
            details={"role": x_actor_role},
        )
    return Actor(id=x_actor_id, role=role)


SessionDep = Annotated[AsyncSession, Depends(get_session)]
ActorDep = Annotated[Actor, Depends(get_actor)]
