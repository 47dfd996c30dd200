"""
ShopService - Character Shop

Loads the catalog and profile, runs the Unlock/Equip Gate and persists
the resulting profile fields.
"""

import logging
from typing import Dict, List, Optional

from betterme.db.store import Storage
from betterme.exceptions import RecordNotFoundError, ShopError
from betterme.models import CharacterItem, ItemCategory, Profile
from betterme.observability import metrics
from betterme.progression import shop

logger = logging.getLogger(__name__)


class ShopService:
    """
    Service for buying and wearing cosmetic items.

    Gate refusals (InsufficientFunds, LevelTooLow, NotUnlocked) propagate to
    the caller unchanged and leave storage untouched.
    """

    def __init__(self, store: Storage):
        self.store = store
        logger.debug("ShopService initialized")

    async def _catalog(self) -> Dict[str, CharacterItem]:
        return {item.id: item for item in await self.store.list_items()}

    @staticmethod
    def _find(catalog: Dict[str, CharacterItem], item_id: str) -> CharacterItem:
        item = catalog.get(item_id)
        if item is None:
            raise RecordNotFoundError(
                f"Item {item_id} not found",
                record_type="Item",
                record_id=item_id,
                operation="shop",
            )
        return item

    async def list_shop(
        self,
        profile_id: str,
        category: Optional[ItemCategory] = None
    ) -> List[shop.ShopEntry]:
        profile = await self.store.get_profile(profile_id)
        return shop.shop_listing(profile, await self._catalog(), category)

    async def purchase(self, profile_id: str, item_id: str) -> Profile:
        profile = await self.store.get_profile(profile_id)
        item = self._find(await self._catalog(), item_id)

        try:
            updated = shop.purchase(profile, item)
        except ShopError:
            metrics.shop_actions_total.labels(action="purchase", status="refused").inc()
            raise

        if updated is profile:
            logger.info(f"Profile {profile_id} already owns {item_id}, nothing charged")
            return profile

        saved = await self.store.update_profile(profile_id, {
            "unlocked_items": updated.unlocked_items,
            "coins": updated.coins,
        })
        metrics.shop_actions_total.labels(action="purchase", status="success").inc()
        logger.info(f"Profile {profile_id} bought {item_id} for {item.coin_cost} coins")
        return saved

    async def equip(self, profile_id: str, item_id: str) -> Profile:
        profile = await self.store.get_profile(profile_id)
        catalog = await self._catalog()
        item = self._find(catalog, item_id)

        try:
            updated = shop.equip(profile, item, catalog)
        except ShopError:
            metrics.shop_actions_total.labels(action="equip", status="refused").inc()
            raise

        saved = await self.store.update_profile(profile_id, {"equipped_items": updated.equipped_items})
        metrics.shop_actions_total.labels(action="equip", status="success").inc()
        return saved

    async def unequip(self, profile_id: str, item_id: str) -> Profile:
        # No catalog lookup: an id retired from the catalog must still come off
        profile = await self.store.get_profile(profile_id)

        updated = shop.unequip(profile, item_id)
        if updated.equipped_items == profile.equipped_items:
            return profile

        saved = await self.store.update_profile(profile_id, {"equipped_items": updated.equipped_items})
        metrics.shop_actions_total.labels(action="unequip", status="success").inc()
        return saved
