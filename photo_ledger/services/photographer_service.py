import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from photo_ledger.core.authorization import Actor, ensure_authorized
from photo_ledger.core.config import settings
from photo_ledger.core.enums import Action
from photo_ledger.db.models import Photographer
from photo_ledger.db.repositories import PhotographerRepository
from photo_ledger.exceptions import (
    DuplicatePhotographerException,
    InvalidCommissionRateException,
    PhotographerNotFoundException,
)
from photo_ledger.schemas.balance import PhotographerBalance
from photo_ledger.schemas.photographers import CommissionUpdate, PhotographerCreate
from photo_ledger.services.balance_calculator import BalanceCalculator
from photo_ledger.services.commission import BPS_DENOMINATOR

logger = logging.getLogger(__name__)


class PhotographerService:
    def __init__(self, session: AsyncSession) -> None:
        self.photographer_repo = PhotographerRepository(session)
        self.balance_calculator = BalanceCalculator(session)

    async def register(
        self, actor: Actor, photographer_data: PhotographerCreate
    ) -> Photographer:
        ensure_authorized(actor, Action.MANAGE_PHOTOGRAPHER, photographer_data.id)

        if await self.photographer_repo.get_by_id(photographer_data.id):
            raise DuplicatePhotographerException(photographer_data.id)

        commission_bps = photographer_data.commission_bps
        if commission_bps is None:
            commission_bps = settings.default_commission_bps

        photographer = await self.photographer_repo.create(
            photographer_id=photographer_data.id,
            display_name=photographer_data.display_name,
            commission_bps=commission_bps,
            metadata_=photographer_data.metadata,
        )
        logger.info(
            "Photographer registered photographer_id=%s commission_bps=%s",
            photographer.id,
            commission_bps,
            extra={"photographer_id": photographer.id},
        )
        return photographer

    async def get(self, actor: Actor, photographer_id: str) -> Photographer:
        ensure_authorized(actor, Action.MANAGE_PHOTOGRAPHER, photographer_id)
        return await self._get_or_raise(photographer_id)

    async def update_commission(
        self, actor: Actor, photographer_id: str, commission_data: CommissionUpdate
    ) -> Photographer:
        """Change the rate for future sales. Realized line items keep their snapshot."""
        ensure_authorized(actor, Action.SET_COMMISSION, photographer_id)
        photographer = await self._get_or_raise(photographer_id)

        if not 0 <= commission_data.commission_bps <= BPS_DENOMINATOR:
            raise InvalidCommissionRateException(commission_data.commission_bps)

        previous = photographer.commission_bps
        photographer = await self.photographer_repo.update_commission(
            photographer, commission_data.commission_bps
        )
        logger.info(
            "Commission rate changed photographer_id=%s from=%s to=%s by=%s",
            photographer_id,
            previous,
            photographer.commission_bps,
            actor.id,
            extra={"photographer_id": photographer_id, "actor_id": actor.id},
        )
        return photographer

    async def get_balance(
        self,
        actor: Actor,
        photographer_id: str,
        currency: Optional[str] = None,
        as_of: Optional[datetime] = None,
    ) -> PhotographerBalance:
        ensure_authorized(actor, Action.VIEW_BALANCE, photographer_id)
        await self._get_or_raise(photographer_id)
        return await self.balance_calculator.get_balance(
            photographer_id, currency, as_of
        )

    async def _get_or_raise(self, photographer_id: str) -> Photographer:
        photographer = await self.photographer_repo.get_by_id(photographer_id)
        if photographer is None:
            raise PhotographerNotFoundException(photographer_id)
        return photographer
