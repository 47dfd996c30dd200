"""
Unlock/Equip Gate

Decides whether a profile may buy or wear cosmetic items. Every operation
returns a new Profile; nothing here touches storage.

Invariants kept by these operations:
- equipped_items holds at most one item per category
- equipped_items is a subset of unlocked_items (equip refuses locked items)
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Union

from betterme.exceptions import InsufficientFunds, LevelTooLow, NotUnlocked
from betterme.models import CharacterItem, ItemCategory, Profile

Catalog = Union[Mapping[str, CharacterItem], Iterable[CharacterItem]]


def _as_mapping(catalog: Catalog) -> Mapping[str, CharacterItem]:
    if isinstance(catalog, Mapping):
        return catalog
    return {item.id: item for item in catalog}


def can_afford(profile: Profile, item: CharacterItem) -> bool:
    return profile.coins >= item.coin_cost


def meets_level(profile: Profile, item: CharacterItem) -> bool:
    return profile.character_level >= item.required_level


def is_unlocked(profile: Profile, item: CharacterItem) -> bool:
    return item.id in profile.unlocked_items


def is_equipped(profile: Profile, item: CharacterItem) -> bool:
    return item.id in profile.equipped_items


def merge_unlocked(unlocked_items: List[str], item_ids: Iterable[str]) -> List[str]:
    """Append ids not already unlocked, keeping existing order"""
    merged = list(unlocked_items)
    for item_id in item_ids:
        if item_id not in merged:
            merged.append(item_id)
    return merged


def purchase(profile: Profile, item: CharacterItem) -> Profile:
    """
    Buy `item` with coins

    Buying an item that is already unlocked returns the profile unchanged
    and charges nothing.

    Raises:
        InsufficientFunds: coins < coin_cost (checked first)
        LevelTooLow: character_level < required_level
    """
    if is_unlocked(profile, item):
        return profile

    if not can_afford(profile, item):
        raise InsufficientFunds(
            item_id=item.id,
            coins=profile.coins,
            coin_cost=item.coin_cost,
            user_id=profile.id,
            operation="purchase",
        )
    if not meets_level(profile, item):
        raise LevelTooLow(
            item_id=item.id,
            character_level=profile.character_level,
            required_level=item.required_level,
            user_id=profile.id,
            operation="purchase",
        )

    return profile.model_copy(update={
        "unlocked_items": merge_unlocked(profile.unlocked_items, [item.id]),
        "coins": profile.coins - item.coin_cost,
    })


def equip(profile: Profile, item: CharacterItem, catalog: Catalog) -> Profile:
    """
    Wear `item`, replacing whatever was equipped in the same category

    Equipped ids missing from the catalog are dropped, since their
    category can no longer be resolved.

    Raises:
        NotUnlocked: item has not been unlocked
    """
    if not is_unlocked(profile, item):
        raise NotUnlocked(item_id=item.id, user_id=profile.id, operation="equip")

    items = _as_mapping(catalog)
    kept = [
        item_id for item_id in profile.equipped_items
        if item_id in items and items[item_id].category != item.category
    ]
    kept.append(item.id)
    return profile.model_copy(update={"equipped_items": kept})


def unequip(profile: Profile, item: Union[CharacterItem, str]) -> Profile:
    """
    Take `item` off; a no-op if it is not equipped

    Accepts a bare id so items retired from the catalog can still be removed.
    """
    item_id = item if isinstance(item, str) else item.id
    return profile.model_copy(update={
        "equipped_items": [i for i in profile.equipped_items if i != item_id]
    })


def free_unlock_check(level: int, catalog: Catalog) -> List[CharacterItem]:
    """Free items (coin_cost 0) whose required_level is exactly `level`"""
    return [
        item for item in _as_mapping(catalog).values()
        if item.required_level == level and item.coin_cost == 0
    ]


@dataclass(frozen=True)
class ShopEntry:
    """One row of the shop view"""
    item: CharacterItem
    unlocked: bool
    equipped: bool
    can_unlock: bool


def shop_listing(
    profile: Profile,
    catalog: Catalog,
    category: Optional[ItemCategory] = None
) -> List[ShopEntry]:
    """
    Build the shop view, ordered by required level

    Args:
        profile: Viewing profile
        catalog: All shop items
        category: Only list this category (None lists everything)
    """
    items: Dict[str, CharacterItem] = dict(_as_mapping(catalog))
    selected = [
        item for item in items.values()
        if category is None or item.category == category
    ]
    selected.sort(key=lambda item: item.required_level)

    return [
        ShopEntry(
            item=item,
            unlocked=is_unlocked(profile, item),
            equipped=is_equipped(profile, item),
            can_unlock=meets_level(profile, item) and can_afford(profile, item),
        )
        for item in selected
    ]
