import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from photo_ledger.core.clock import utcnow
from photo_ledger.db.models import Photographer

logger = logging.getLogger(__name__)


class PhotographerRepository:

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, photographer_id: str) -> Optional[Photographer]:
        stmt = select(Photographer).where(Photographer.id == photographer_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_for_update(self, photographer_id: str) -> Optional[Photographer]:
        """Lock the photographer row; serializes writers of the same ledger."""
        stmt = (
            select(Photographer)
            .where(Photographer.id == photographer_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(
        self,
        photographer_id: str,
        display_name: str,
        commission_bps: int,
        metadata_: Optional[dict] = None,
    ) -> Photographer:
        photographer = Photographer(
            id=photographer_id,
            display_name=display_name,
            commission_bps=commission_bps,
            metadata_=metadata_,
        )
        self.session.add(photographer)
        await self.session.flush()
        return photographer

    async def get_or_create(
        self, photographer_id: str, commission_bps: int, display_name: Optional[str] = None
    ) -> tuple[Photographer, bool]:
        photographer = await self.get_by_id(photographer_id)
        if photographer:
            return photographer, False

        photographer = Photographer(
            id=photographer_id,
            display_name=display_name or photographer_id,
            commission_bps=commission_bps,
        )
        created = False
        try:
            async with self.session.begin_nested():
                self.session.add(photographer)
                await self.session.flush()
                created = True
        except IntegrityError:
            logger.info(
                "Photographer already exists (race condition handled) photographer_id=%s",
                photographer_id,
                extra={"photographer_id": photographer_id},
            )

        if created:
            logger.info(
                "Created new photographer photographer_id=%s commission_bps=%s",
                photographer_id,
                commission_bps,
                extra={"photographer_id": photographer_id},
            )
            return photographer, True

        stmt = select(Photographer).where(Photographer.id == photographer_id)
        result = await self.session.execute(stmt)
        return result.scalar_one(), False

    async def touch_ledger(self, photographer: Photographer) -> None:
        """Mark a ledger write; the flush bumps ledger_version."""
        photographer.last_ledger_activity_at = utcnow()
        await self.session.flush()

    async def update_commission(
        self, photographer: Photographer, commission_bps: int
    ) -> Photographer:
        photographer.commission_bps = commission_bps
        await self.session.flush()
        return photographer

    async def increment_counters(
        self, photographer_id: str, sales: int, revenue: int
    ) -> None:
        stmt = (
            update(Photographer)
            .where(Photographer.id == photographer_id)
            .values(
                total_sales=Photographer.total_sales + sales,
                total_revenue=Photographer.total_revenue + revenue,
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
