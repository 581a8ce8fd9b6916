"""
Order submission with inventory reconciliation.

An order, its items and the stock decrements for every ingredient its
products consume are written in one transaction: either all of it commits
or none of it does.
"""
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from .models import Ingredient, Order, OrderItem, Product, ProductIngredient

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def money(value) -> Decimal:
    """Round to whole cents, the precision of every money column."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


# ---------- Errors ----------

class OrderError(Exception):
    """Base for order submission failures; `reason` labels the failure metric."""
    reason = "error"

class EmptyOrderError(OrderError):
    reason = "empty"

    def __init__(self):
        super().__init__("Order must contain at least one item")

class UnknownProductError(OrderError):
    reason = "missing_product"

    def __init__(self, product_ids: Iterable[int]):
        self.product_ids = sorted(product_ids)
        super().__init__(f"unknown product(s): {self.product_ids}")

class MissingIngredientError(OrderError):
    reason = "missing_ingredient"

    def __init__(self, ingredient_id: int):
        self.ingredient_id = ingredient_id
        super().__init__(f"Ingredient ID {ingredient_id} not found in inventory")

class InsufficientStockError(OrderError):
    reason = "insufficient_stock"

    def __init__(self, ingredient_id: int, needed: int, available: int):
        self.ingredient_id = ingredient_id
        self.needed = needed
        self.available = available
        super().__init__(
            f"Insufficient inventory for ingredient ID {ingredient_id}. "
            f"Need {needed}, have {available}"
        )


# ---------- Line items ----------

@dataclass(frozen=True)
class LineItem:
    product_id: int
    product_name: str
    quantity: int
    price_per_unit: Decimal
    subtotal: Decimal

@dataclass(frozen=True)
class Receipt:
    order_id: int
    total_price: Decimal


def describe_customization(name, size=None, ice_level=None, sweetness_level=None, toppings=()) -> str:
    """Display name stored on the order item, e.g. 'Taro Milk Tea (Size: Large, Ice: Less Ice)'."""
    details = [
        f"Size: {size}" if size else None,
        f"Ice: {ice_level}" if ice_level else None,
        f"Sweetness: {sweetness_level}" if sweetness_level else None,
        f"Toppings: {', '.join(toppings)}" if toppings else None,
    ]
    details = [d for d in details if d]
    return f"{name} ({', '.join(details)})" if details else name


def customer_line(product_id: int, name: str, quantity: int, line_price: Decimal, **custom) -> LineItem:
    """Turn a customized drink from the customer cart into a line item.

    The customer cart carries the price of the whole line, so the unit
    price is derived from it.
    """
    line_price = money(line_price)
    return LineItem(
        product_id=product_id,
        product_name=describe_customization(name, **custom),
        quantity=quantity,
        price_per_unit=money(line_price / quantity),
        subtotal=line_price,
    )


# ---------- Helpers ----------

def check_products(session: Session, product_ids: Iterable[int]) -> None:
    ids = set(product_ids)
    found = set(session.execute(select(Product.id).where(Product.id.in_(ids))).scalars())
    if found != ids:
        raise UnknownProductError(ids - found)

def required_stock(session: Session, lines: Sequence[LineItem]) -> Dict[int, int]:
    """
    Total quantity of every ingredient the lines consume.
    Returns {ingredient_id: quantity_needed * order_quantity summed over lines}.
    Products without a recipe consume nothing.
    """
    ordered: Dict[int, int] = {}
    for line in lines:
        ordered[line.product_id] = ordered.get(line.product_id, 0) + line.quantity

    rows = session.execute(
        select(ProductIngredient.product_id, ProductIngredient.ingredient_id, ProductIngredient.quantity_needed)
        .where(ProductIngredient.product_id.in_(list(ordered)))
    ).all()

    required: Dict[int, int] = {}
    for product_id, ingredient_id, quantity_needed in rows:
        required[ingredient_id] = required.get(ingredient_id, 0) + quantity_needed * ordered[product_id]
    return required

def consume_stock(session: Session, required: Dict[int, int]) -> None:
    """
    Decrement ingredient stock, checking availability first.
    Ingredients are visited in id order so concurrent orders lock rows in the
    same sequence. The decrement is conditional on the stock still being there.
    """
    for ingredient_id in sorted(required):
        needed = required[ingredient_id]
        available = session.execute(
            select(Ingredient.quantity).where(Ingredient.id == ingredient_id)
        ).scalar_one_or_none()
        if available is None:
            raise MissingIngredientError(ingredient_id)
        if available < needed:
            raise InsufficientStockError(ingredient_id, needed, available)

        res = session.execute(
            update(Ingredient)
            .where(Ingredient.id == ingredient_id, Ingredient.quantity >= needed)
            .values(quantity=Ingredient.quantity - needed)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            # depleted by a concurrent order between the check and the update
            raise InsufficientStockError(ingredient_id, needed, available)
        logger.debug("decremented ingredient %s by %s (was %s)", ingredient_id, needed, available)


# ---------- Submission ----------

def submit_order(session: Session, lines: Sequence[LineItem]) -> Receipt:
    """Record an order and consume the inventory it needs, all or nothing.

    Raises an OrderError subclass when the order cannot be filled; database
    errors propagate unchanged. In both cases nothing is written.
    """
    if not lines:
        raise EmptyOrderError()

    try:
        check_products(session, (line.product_id for line in lines))

        subtotals = [money(line.subtotal) for line in lines]
        total = sum(subtotals, Decimal("0"))
        order = Order(total_price=total)
        session.add(order)
        session.flush()  # get order.id
        order_id = order.id

        for line, subtotal in zip(lines, subtotals):
            session.add(OrderItem(
                order_id=order_id,
                product_id=line.product_id,
                product_name=line.product_name,
                quantity=line.quantity,
                price_per_unit=money(line.price_per_unit),
                subtotal=subtotal,
            ))
        session.flush()

        consume_stock(session, required_stock(session, lines))

        session.commit()
    except OrderError as e:
        session.rollback()
        logger.warning("order rolled back: %s", e)
        raise
    except Exception:
        session.rollback()
        logger.exception("order rolled back on database error")
        raise

    logger.info("order %s committed, %d item(s), total %s", order_id, len(lines), total)
    return Receipt(order_id=order_id, total_price=total)


def next_order_id(session: Session) -> int:
    """Id the next order will most likely get; display only."""
    return session.execute(select(func.coalesce(func.max(Order.id), 0) + 1)).scalar_one()


def to_lines(items: Iterable) -> List[LineItem]:
    """Cashier cart entries (anything with the LineItem attributes) to line items."""
    return [
        LineItem(
            product_id=it.product_id,
            product_name=it.product_name,
            quantity=it.quantity,
            price_per_unit=money(it.price_per_unit),
            subtotal=money(it.subtotal),
        )
        for it in items
    ]
