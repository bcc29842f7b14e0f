"""
Shop - Offer generation and purchases.

Pricing for shop number n = level // 3:
- item slot i costs 1 + n + i, plus (i - 4) from the sixth slot on
- upgrade slot i costs 6 + n + i
- the character's surcharge is added to every price

A health potion is always among the items. Each Traders upgrade adds one
item offer and one upgrade offer.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import random

from .state import RunState, ShopOffer
from .action import RejectionCode
from .reveal import apply_item_effect, store_item
from .upgrade_effects import apply_upgrade
from ..content.characters import modify_shop_price
from ..content.items import HEALTH_POTION, SHOP_ITEMS
from ..content.upgrades import availability_error, available_upgrades

logger = logging.getLogger(__name__)

SHOP_ITEM_COUNT = 5
BASE_ITEM_PRICE = 1
BASE_UPGRADE_PRICE = 6


@dataclass
class ShopPurchase:
    success: bool
    message: str
    offer: ShopOffer | None = None
    error_code: RejectionCode | None = None


def item_price(level: int, slot: int) -> int:
    shop_number = level // 3
    cost = BASE_ITEM_PRICE + shop_number + slot
    if slot >= SHOP_ITEM_COUNT:
        cost += slot - SHOP_ITEM_COUNT + 1
    return cost


def upgrade_price(level: int, slot: int) -> int:
    return BASE_UPGRADE_PRICE + level // 3 + slot


@dataclass
class ShopEngine:
    rng: random.Random = field(default_factory=random.Random)
    item_count: int = SHOP_ITEM_COUNT

    def open(self, run: RunState) -> list[ShopOffer]:
        """Generate offers for the run's current level."""
        level = run.current_level
        traders = run.upgrade_count("traders")
        item_slots = min(self.item_count + traders, len(SHOP_ITEMS))
        picks = self.rng.sample(SHOP_ITEMS, item_slots)
        picks[self.rng.randrange(len(picks))] = HEALTH_POTION

        offers = [
            ShopOffer(
                offer=definition.create(),
                cost=modify_shop_price(run.character, item_price(level, slot), level),
            )
            for slot, definition in enumerate(picks)
        ]

        pool = available_upgrades(run.upgrades, run.character)
        upgrade_slots = 1 + traders
        for slot, definition in enumerate(self.rng.sample(pool, min(upgrade_slots, len(pool)))):
            offers.append(ShopOffer(
                offer=definition.create(),
                cost=modify_shop_price(run.character, upgrade_price(level, slot), level),
            ))

        logger.debug("Shop opened on level %d with %d offers", level, len(offers))
        return offers

    def buy(self, run: RunState, offers: list[ShopOffer], index: int) -> ShopPurchase:
        """
        Buy the offer at `index`.

        On success the cost is paid and the offer leaves the list. On any
        failure nothing changes.
        """
        if not 0 <= index < len(offers):
            return ShopPurchase(False, "Invalid item index", error_code=RejectionCode.INVALID_TARGET)
        offer = offers[index]
        if run.gold < offer.cost:
            return ShopPurchase(
                False,
                f"Not enough gold! Need {offer.cost}, have {run.gold}",
                error_code=RejectionCode.INSUFFICIENT_GOLD,
            )

        if offer.is_upgrade:
            error = availability_error(offer.offer.upgrade_id, run.upgrades, run.character)
            if error:
                return ShopPurchase(False, error, error_code=RejectionCode.NOT_ALLOWED)

        run.gold -= offer.cost
        offers.pop(index)

        if offer.is_upgrade:
            message = apply_upgrade(run, offer.offer.upgrade_id).message
        elif offer.offer.immediate:
            message = apply_item_effect(run, offer.offer) or f"Used {offer.offer.name}"
        else:
            message = store_item(run, offer.offer)

        logger.info("Bought %s for %d gold", offer.offer.name, offer.cost)
        return ShopPurchase(True, f"Bought {offer.offer.name}. {message}", offer=offer)
