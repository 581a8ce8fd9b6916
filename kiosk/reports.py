"""
Sales and inventory reports for the manager view.

Order timestamps are stored in UTC, so "today" and date ranges are UTC
calendar days.
"""
import datetime as dt
import os
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .models import Employee, Ingredient, Order, OrderItem, Product, ProductIngredient
from .schemas import MenuStatOut, ProductSalesOut, ProductUsageOut, StockLevelOut, XReportOut

LOW_STOCK_THRESHOLD = int(os.getenv("LOW_STOCK_THRESHOLD", "10"))
TOP_ITEMS = 5

# days a period's sales are averaged over
PERIOD_DAYS = {"day": 1, "week": 7, "month": 30}


def day_start(day: dt.date) -> dt.datetime:
    return dt.datetime.combine(day, dt.time.min)


def sales_by_name(session: Session, start: dt.datetime, end: Optional[dt.datetime] = None) -> List[ProductSalesOut]:
    """Units sold per order-item name in [start, end), best sellers first."""
    qty = func.sum(OrderItem.quantity).label("quantity")
    q = (
        select(OrderItem.product_name, qty)
        .join(Order, OrderItem.order_id == Order.id)
        .where(Order.created_at >= start)
    )
    if end is not None:
        q = q.where(Order.created_at < end)
    q = q.group_by(OrderItem.product_name).order_by(qty.desc(), OrderItem.product_name)
    return [ProductSalesOut(product_name=name, quantity=int(n)) for name, n in session.execute(q).all()]


def sales_by_product(session: Session, start: dt.datetime, end: Optional[dt.datetime] = None) -> Dict[int, int]:
    """{product_id: units sold} in [start, end). Items without a product id are skipped."""
    q = (
        select(OrderItem.product_id, func.sum(OrderItem.quantity))
        .join(Order, OrderItem.order_id == Order.id)
        .where(Order.created_at >= start, OrderItem.product_id.is_not(None))
    )
    if end is not None:
        q = q.where(Order.created_at < end)
    q = q.group_by(OrderItem.product_id)
    return {pid: int(n) for pid, n in session.execute(q).all()}


def x_report(session: Session, today: Optional[dt.date] = None) -> XReportOut:
    """Today's activity: orders, revenue, best sellers, low stock and staff."""
    today = today or dt.datetime.utcnow().date()
    start = day_start(today)

    order_count, revenue = session.execute(
        select(func.count(Order.id), func.coalesce(func.sum(Order.total_price), 0))
        .where(Order.created_at >= start)
    ).one()

    sold = sales_by_name(session, start)

    low_stock = session.execute(
        select(Ingredient.name, Ingredient.quantity)
        .where(Ingredient.quantity < LOW_STOCK_THRESHOLD)
        .order_by(Ingredient.quantity, Ingredient.name)
    ).all()

    employee_count, avg_wage = session.execute(
        select(func.count(Employee.id), func.avg(Employee.wage))
    ).one()

    return XReportOut(
        date=today,
        total_orders=order_count,
        total_revenue=float(revenue or 0),
        total_items=sum(s.quantity for s in sold),
        top_items=sold[:TOP_ITEMS],
        low_stock=[StockLevelOut(name=name, quantity=q) for name, q in low_stock],
        employee_count=employee_count,
        avg_wage=float(avg_wage or 0),
    )


def product_usage(session: Session, start_date: dt.date, end_date: dt.date) -> ProductUsageOut:
    """Products sold and the ingredients they consumed between two dates, inclusive.

    Ingredient usage is derived from the current recipes.
    """
    if end_date < start_date:
        raise ValueError("endDate must not be before startDate")
    start = day_start(start_date)
    end = day_start(end_date + dt.timedelta(days=1))

    sold = sales_by_name(session, start, end)
    per_product = sales_by_product(session, start, end)

    usage: Dict[str, int] = {}
    if per_product:
        rows = session.execute(
            select(ProductIngredient.product_id, Ingredient.name, ProductIngredient.quantity_needed)
            .join(Ingredient, ProductIngredient.ingredient_id == Ingredient.id)
            .where(ProductIngredient.product_id.in_(list(per_product)))
        ).all()
        for pid, ingredient_name, quantity_needed in rows:
            usage[ingredient_name] = usage.get(ingredient_name, 0) + per_product[pid] * quantity_needed

    used = sorted(usage.items(), key=lambda kv: (-kv[1], kv[0]))
    return ProductUsageOut(
        start_date=start_date,
        end_date=end_date,
        products_sold=sold,
        ingredients_used=[StockLevelOut(name=name, quantity=q) for name, q in used],
        total_products=sum(s.quantity for s in sold),
        total_ingredients=sum(usage.values()),
    )


def menu_stats(session: Session, period: str = "day", now: Optional[dt.datetime] = None) -> List[MenuStatOut]:
    """Units sold per product over the period, with a per-day average. Unknown periods count as day."""
    period = period.lower()
    if period not in PERIOD_DAYS:
        period = "day"
    now = now or dt.datetime.utcnow()
    if period == "day":
        start = day_start(now.date())
    else:
        start = now - dt.timedelta(days=PERIOD_DAYS[period])

    sold = sales_by_product(session, start)
    products = session.execute(
        select(Product.id, Product.name).order_by(Product.category, Product.name)
    ).all()

    days = PERIOD_DAYS[period]
    stats = []
    for pid, name in products:
        total = sold.get(pid, 0)
        stats.append(MenuStatOut(
            name=name,
            total_sold=total,
            avg_per_day=total if days == 1 else round(total / days, 1),
        ))
    return stats
