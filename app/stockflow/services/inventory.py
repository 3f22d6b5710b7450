from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from app.stockflow.db.models import Product, StockLayer

UNIT_COST_QUANT = Decimal("0.0001")
MONEY_QUANT = Decimal("0.01")


@dataclass(frozen=True)
class StockDetails:
    total_stock: int | None
    current_sell_price: Decimal | None
    average_cost_price: Decimal | None


@dataclass(frozen=True)
class FifoConsumption:
    quantity: int
    total_cost: Decimal
    shortfall: int

    @property
    def unit_cost(self) -> Decimal:
        if self.quantity <= 0:
            return Decimal("0")
        return (self.total_cost / Decimal(self.quantity)).quantize(UNIT_COST_QUANT, rounding=ROUND_HALF_UP)


def quantize_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def _decimal(value) -> Decimal:
    return Decimal(str(value if value is not None else 0))


def stock_details(product: Product, layers: list[StockLayer]) -> StockDetails:
    """On-hand quantity and prices for a product, from the layers passed in.

    Untracked products carry their prices on the product itself. For tracked
    products the current sell price is the oldest layer with stock (newest
    layer when sold out) and the average cost is weighted by what is on hand,
    or by the purchased quantities once everything is sold.
    """
    if not product.track_quantity:
        return StockDetails(
            total_stock=None,
            current_sell_price=product.default_sell_price,
            average_cost_price=product.default_cost_price,
        )
    if not layers:
        return StockDetails(total_stock=0, current_sell_price=None, average_cost_price=None)

    by_age = sorted(layers, key=lambda layer: layer.purchased_at)
    available = [layer for layer in by_age if layer.quantity > 0]
    total_stock = sum(layer.quantity for layer in available)

    if available:
        current_sell_price = _decimal(available[0].sell_price)
        weighted = sum((_decimal(layer.cost_price) * layer.quantity for layer in available), Decimal("0"))
        average_cost = weighted / Decimal(total_stock)
    else:
        current_sell_price = _decimal(by_age[-1].sell_price)
        purchased = sum(layer.initial_quantity for layer in by_age)
        weighted = sum((_decimal(layer.cost_price) * layer.initial_quantity for layer in by_age), Decimal("0"))
        average_cost = weighted / Decimal(purchased) if purchased else Decimal("0")

    return StockDetails(
        total_stock=total_stock,
        current_sell_price=current_sell_price,
        average_cost_price=average_cost.quantize(UNIT_COST_QUANT, rounding=ROUND_HALF_UP),
    )


def consume_fifo(layers: list[StockLayer], quantity: int) -> FifoConsumption:
    """Draw ``quantity`` units from ``layers`` (oldest first), mutating them in place.

    The caller must roll back the session when ``shortfall`` is non-zero.
    """
    remaining = quantity
    total_cost = Decimal("0")
    for layer in sorted(layers, key=lambda layer: layer.purchased_at):
        if remaining <= 0:
            break
        if layer.quantity <= 0:
            continue
        taken = min(remaining, layer.quantity)
        layer.quantity -= taken
        total_cost += _decimal(layer.cost_price) * taken
        remaining -= taken
    return FifoConsumption(quantity=quantity, total_cost=total_cost, shortfall=remaining)
