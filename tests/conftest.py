import os

# keep the module-level engine off PostgreSQL; each test gets its own database below
os.environ.setdefault("DATABASE_URL", "sqlite://")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from kiosk.db import get_session, init_db, make_engine
from kiosk.main import app
from kiosk.models import Employee, Ingredient, Product, ProductIngredient


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'kiosk.db'}")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture
def session(session_factory):
    s = session_factory()
    yield s
    s.close()


@pytest.fixture
def client(session_factory):
    def override_session():
        s = session_factory()
        try:
            yield s
            s.commit()
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()

    app.dependency_overrides[get_session] = override_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seed(session_factory):
    """
    Ingredients: Black Tea 100, Milk 50, Tapioca Pearls 10, Sugar Syrup 5, Lychee Jelly 0.
    Classic Milk Tea = 1 tea + 1 milk + 2 pearls; Lychee Green Tea = 1 tea + 1 syrup;
    Bottled Water has no recipe.
    """
    with session_factory() as s:
        s.add_all([
            Ingredient(id=1, name="Black Tea", category="Tea", price=Decimal("0.20"), quantity=100),
            Ingredient(id=2, name="Milk", category="Dairy", price=Decimal("0.30"), quantity=50),
            Ingredient(id=3, name="Tapioca Pearls", category="Topping", price=Decimal("0.25"), quantity=10),
            Ingredient(id=4, name="Sugar Syrup", category="Sweetener", price=Decimal("0.05"), quantity=5),
            Ingredient(id=5, name="Lychee Jelly", category="Topping", price=Decimal("0.25"), quantity=0),
            Product(id=1, name="Classic Milk Tea", category="Milk Tea", price=Decimal("4.50")),
            Product(id=2, name="Lychee Green Tea", category="Fruit Tea", price=Decimal("5.00")),
            Product(id=3, name="Bottled Water", category="Other", price=Decimal("1.00")),
            Employee(id=1, name="Alice", role="Cashier", wage=Decimal("15.00")),
            Employee(id=2, name="Bob", role="Manager", wage=Decimal("25.00")),
        ])
        s.flush()
        s.add_all([
            ProductIngredient(product_id=1, ingredient_id=1, quantity_needed=1),
            ProductIngredient(product_id=1, ingredient_id=2, quantity_needed=1),
            ProductIngredient(product_id=1, ingredient_id=3, quantity_needed=2),
            ProductIngredient(product_id=2, ingredient_id=1, quantity_needed=1),
            ProductIngredient(product_id=2, ingredient_id=4, quantity_needed=1),
        ])
        s.commit()


@pytest.fixture
def stock(session_factory):
    """Current stock as {ingredient_id: quantity}, read through a fresh session."""
    def read():
        with session_factory() as s:
            return {i.id: i.quantity for i in s.query(Ingredient).all()}
    return read
