from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import crud
from ..db import get_session
from ..metrics import ORDERS_CREATED
from ..orders import next_order_id, submit_order, to_lines
from ..schemas import CashierOrderIn, InventoryItemOut, MenuItemOut, NextOrderIdOut, OrderReceiptOut
from .menu import menu_items

router = APIRouter(prefix="/cashier", tags=["cashier"])

@router.get("/products", response_model=List[MenuItemOut])
def list_products(session: Session = Depends(get_session)):
    return menu_items(session)

@router.get("/next-order-id", response_model=NextOrderIdOut)
def get_next_order_id(session: Session = Depends(get_session)):
    return NextOrderIdOut(next_order_id=next_order_id(session))

@router.post("/orders", response_model=OrderReceiptOut)
def create_cashier_order(payload: CashierOrderIn, session: Session = Depends(get_session)):
    receipt = submit_order(session, to_lines(payload.items))
    ORDERS_CREATED.labels("cashier").inc()
    return OrderReceiptOut(
        order_id=receipt.order_id,
        message="Order placed successfully",
        total_price=receipt.total_price,
    )

@router.get("/inventory", response_model=List[InventoryItemOut])
def get_inventory(session: Session = Depends(get_session)):
    return [
        InventoryItemOut(item_id=i.id, name=i.name, category=i.category, quantity=i.quantity)
        for i in crud.get_ingredients(session)
    ]
