import datetime as dt
from decimal import Decimal
from typing import List, Optional, Union
from pydantic import BaseModel, Field
from pydantic import ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Models whose JSON keys are camelCase (the kiosk frontend's convention)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------- Menu / customer ----------

class MenuItemOut(BaseModel):
    product_id: int
    name: str
    category: str
    price: float

class ToppingOut(BaseModel):
    id: int
    name: str
    price: float

class CustomizationsOut(CamelModel):
    sizes: List[str]
    ice_options: List[str]
    sweetness_options: List[str]
    toppings: List[ToppingOut]

class ToppingIn(BaseModel):
    id: Union[int, str]
    name: str
    price: Decimal = Field(ge=0, default=Decimal("0"))

class CustomerItemIn(CamelModel):
    menu_item_id: int = Field(ge=1)
    name: str = Field(min_length=1)
    size: Optional[str] = None
    ice_level: Optional[str] = None
    sweetness_level: Optional[str] = None
    toppings: List[ToppingIn] = Field(default_factory=list)
    # line total, toppings and size included
    price: Decimal = Field(ge=0)
    quantity: int = Field(ge=1, default=1)

class CustomerOrderIn(CamelModel):
    items: List[CustomerItemIn] = Field(default_factory=list)
    # informational only; the server recomputes the total from the items
    total: Optional[Decimal] = None
    customer_email: Optional[str] = None


# ---------- Cashier ----------

class CartLineIn(BaseModel):
    product_id: int = Field(ge=1)
    product_name: str = Field(min_length=1)
    quantity: int = Field(ge=1)
    price_per_unit: Decimal = Field(ge=0)
    subtotal: Decimal = Field(ge=0)

class CashierOrderIn(BaseModel):
    # may be empty: the submission itself rejects it with 400
    items: List[CartLineIn] = Field(default_factory=list)

class OrderReceiptOut(CamelModel):
    order_id: int
    message: str
    total_price: float

class NextOrderIdOut(CamelModel):
    next_order_id: int

class InventoryItemOut(BaseModel):
    item_id: int
    name: str
    category: str
    quantity: int


# ---------- Manager: catalog ----------

class ProductIn(BaseModel):
    name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    price: Decimal = Field(ge=0)

class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    category: str
    price: float

class RecipeLineIn(BaseModel):
    ingredient_id: int = Field(ge=1)
    quantity_needed: int = Field(ge=1, default=1)

class RecipeIn(BaseModel):
    ingredients: List[RecipeLineIn] = Field(default_factory=list)

class RecipeLineOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    ingredient_id: int
    quantity_needed: int

class IngredientIn(BaseModel):
    name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    price: Decimal = Field(ge=0, default=Decimal("0"))
    quantity: int = Field(ge=0, default=0)

class IngredientUpdate(BaseModel):
    price: Optional[Decimal] = Field(ge=0, default=None)
    quantity: Optional[int] = Field(ge=0, default=None)

class IngredientOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    category: str
    price: float
    quantity: int

class EmployeeIn(BaseModel):
    name: str = Field(min_length=1)
    role: str = Field(min_length=1)
    salary: Decimal = Field(ge=0)

class EmployeeOut(BaseModel):
    id: int
    name: str
    role: str
    salary: float

class DeletedOut(BaseModel):
    success: bool = True


# ---------- Manager: reports ----------

class ProductSalesOut(BaseModel):
    product_name: str
    quantity: int

class StockLevelOut(BaseModel):
    name: str
    quantity: int

class XReportOut(CamelModel):
    date: dt.date
    total_orders: int
    total_revenue: float
    total_items: int
    top_items: List[ProductSalesOut]
    low_stock: List[StockLevelOut]
    employee_count: int
    avg_wage: float

class ProductUsageOut(CamelModel):
    start_date: dt.date
    end_date: dt.date
    products_sold: List[ProductSalesOut]
    ingredients_used: List[StockLevelOut]
    total_products: int
    total_ingredients: int

class MenuStatOut(CamelModel):
    name: str
    total_sold: int
    avg_per_day: float
