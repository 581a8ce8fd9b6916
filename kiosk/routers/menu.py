import logging
from decimal import Decimal
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import crud
from ..db import get_session
from ..metrics import ORDERS_CREATED
from ..orders import customer_line, submit_order
from ..schemas import CustomerOrderIn, CustomizationsOut, MenuItemOut, OrderReceiptOut, ToppingOut

logger = logging.getLogger(__name__)

router = APIRouter(tags=["menu"])

SIZES = ["Small", "Medium", "Large"]
ICE_OPTIONS = ["No Ice", "Less Ice", "Regular Ice", "Extra Ice"]
SWEETNESS_OPTIONS = ["0%", "25%", "50%", "75%", "100%"]
TOPPING_PRICE = Decimal("0.50")


def menu_items(session: Session) -> List[MenuItemOut]:
    return [
        MenuItemOut(product_id=p.id, name=p.name, category=p.category, price=p.price)
        for p in crud.get_products(session)
    ]

@router.get("/menu", response_model=List[MenuItemOut])
def get_menu(session: Session = Depends(get_session)):
    return menu_items(session)

@router.get("/customizations", response_model=CustomizationsOut)
def get_customizations(session: Session = Depends(get_session)):
    # any ingredient currently in stock can be added as a topping
    toppings = sorted(crud.get_ingredients(session, in_stock_only=True), key=lambda i: i.name)
    return CustomizationsOut(
        sizes=SIZES,
        ice_options=ICE_OPTIONS,
        sweetness_options=SWEETNESS_OPTIONS,
        toppings=[ToppingOut(id=i.id, name=i.name, price=TOPPING_PRICE) for i in toppings],
    )

@router.post("/orders", response_model=OrderReceiptOut)
def create_customer_order(payload: CustomerOrderIn, session: Session = Depends(get_session)):
    lines = [
        customer_line(
            it.menu_item_id,
            it.name,
            it.quantity,
            it.price,
            size=it.size,
            ice_level=it.ice_level,
            sweetness_level=it.sweetness_level,
            toppings=[t.name for t in it.toppings],
        )
        for it in payload.items
    ]
    receipt = submit_order(session, lines)
    ORDERS_CREATED.labels("kiosk").inc()
    logger.info("kiosk order %s placed by %s", receipt.order_id, payload.customer_email or "guest")
    return OrderReceiptOut(order_id=receipt.order_id, message="order placed", total_price=receipt.total_price)
