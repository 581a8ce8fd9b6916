from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from .models import Employee, Ingredient, Product, ProductIngredient

# Writes only flush; the request-scoped session commits or rolls back.


# ---------- Products ----------

def get_products(db: Session) -> List[Product]:
    return db.execute(select(Product).order_by(Product.category, Product.name)).scalars().all()

def get_product(db: Session, product_id: int) -> Optional[Product]:
    return db.get(Product, product_id)

def create_product(db: Session, data: dict) -> Product:
    p = Product(**data)
    db.add(p)
    db.flush()
    db.refresh(p)
    return p

def update_product(db: Session, product_id: int, data: dict) -> Optional[Product]:
    p = get_product(db, product_id)
    if not p:
        return None
    for key, value in data.items():
        setattr(p, key, value)
    db.flush()
    db.refresh(p)
    return p

def delete_product(db: Session, product_id: int) -> Optional[Product]:
    p = get_product(db, product_id)
    if p:
        db.delete(p)
        db.flush()
    return p


# ---------- Recipes ----------

def get_recipe(db: Session, product_id: int) -> List[ProductIngredient]:
    return db.execute(
        select(ProductIngredient)
        .where(ProductIngredient.product_id == product_id)
        .order_by(ProductIngredient.ingredient_id)
    ).scalars().all()

def replace_recipe(db: Session, product_id: int, lines: List[dict]) -> List[ProductIngredient]:
    """Swap a product's whole ingredient list.

    lines: [{"ingredient_id": int, "quantity_needed": int}, ...]
    Duplicate ingredient ids are merged by adding their quantities.
    Raises ValueError("unknown_ingredient:<ids>") if an ingredient does not exist.
    """
    merged: dict[int, int] = {}
    for line in lines:
        iid = int(line["ingredient_id"])
        merged[iid] = merged.get(iid, 0) + int(line.get("quantity_needed") or 1)

    if merged:
        found = set(db.execute(select(Ingredient.id).where(Ingredient.id.in_(list(merged)))).scalars())
        missing = sorted(set(merged) - found)
        if missing:
            raise ValueError(f"unknown_ingredient:{missing}")

    db.execute(delete(ProductIngredient).where(ProductIngredient.product_id == product_id))
    for iid, qty in merged.items():
        db.add(ProductIngredient(product_id=product_id, ingredient_id=iid, quantity_needed=qty))
    db.flush()
    return get_recipe(db, product_id)


# ---------- Ingredients ----------

def get_ingredients(db: Session, in_stock_only: bool = False) -> List[Ingredient]:
    q = select(Ingredient)
    if in_stock_only:
        q = q.where(Ingredient.quantity > 0)
    return db.execute(q.order_by(Ingredient.category, Ingredient.name)).scalars().all()

def get_ingredient(db: Session, ingredient_id: int) -> Optional[Ingredient]:
    return db.get(Ingredient, ingredient_id)

def create_ingredient(db: Session, data: dict) -> Ingredient:
    i = Ingredient(**data)
    db.add(i)
    db.flush()
    db.refresh(i)
    return i

def update_ingredient(db: Session, ingredient_id: int, data: dict) -> Optional[Ingredient]:
    """Partial update: keys whose value is None are left alone."""
    i = get_ingredient(db, ingredient_id)
    if not i:
        return None
    for key, value in data.items():
        if value is not None:
            setattr(i, key, value)
    db.flush()
    db.refresh(i)
    return i

def delete_ingredient(db: Session, ingredient_id: int) -> Optional[Ingredient]:
    i = get_ingredient(db, ingredient_id)
    if i:
        db.execute(delete(ProductIngredient).where(ProductIngredient.ingredient_id == ingredient_id))
        db.delete(i)
        db.flush()
    return i


# ---------- Employees ----------

def get_employees(db: Session) -> List[Employee]:
    return db.execute(select(Employee).order_by(Employee.name)).scalars().all()

def get_employee(db: Session, employee_id: int) -> Optional[Employee]:
    return db.get(Employee, employee_id)

def create_employee(db: Session, data: dict) -> Employee:
    e = Employee(**data)
    db.add(e)
    db.flush()
    db.refresh(e)
    return e

def update_employee(db: Session, employee_id: int, data: dict) -> Optional[Employee]:
    e = get_employee(db, employee_id)
    if not e:
        return None
    for key, value in data.items():
        setattr(e, key, value)
    db.flush()
    db.refresh(e)
    return e

def delete_employee(db: Session, employee_id: int) -> Optional[Employee]:
    e = get_employee(db, employee_id)
    if e:
        db.delete(e)
        db.flush()
    return e
