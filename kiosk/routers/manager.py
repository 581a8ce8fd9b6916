from typing import List
from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.orm import Session

from .. import crud
from ..db import get_session
from ..deps import require_user
from ..models import Employee
from ..schemas import (
    DeletedOut,
    EmployeeIn,
    EmployeeOut,
    IngredientIn,
    IngredientOut,
    IngredientUpdate,
    ProductIn,
    ProductOut,
    RecipeIn,
    RecipeLineOut,
)

router = APIRouter(prefix="/manager", tags=["manager"])


# ---------- Products ----------

@router.get("/products", response_model=List[ProductOut])
def list_products(session: Session = Depends(get_session)):
    return crud.get_products(session)

@router.post("/products", response_model=ProductOut)
def create_product(payload: ProductIn, user: str = Depends(require_user), session: Session = Depends(get_session)):
    return crud.create_product(session, payload.model_dump())

@router.put("/products/{pid}", response_model=ProductOut)
def update_product(pid: int, payload: ProductIn, user: str = Depends(require_user), session: Session = Depends(get_session)):
    p = crud.update_product(session, pid, payload.model_dump())
    if not p:
        raise HTTPException(status_code=404, detail="not found")
    return p

@router.delete("/products/{pid}", response_model=DeletedOut)
def delete_product(pid: int, user: str = Depends(require_user), session: Session = Depends(get_session)):
    if not crud.delete_product(session, pid):
        raise HTTPException(status_code=404, detail="not found")
    return DeletedOut()

@router.get("/products/{pid}/ingredients", response_model=List[RecipeLineOut])
def get_product_ingredients(pid: int, session: Session = Depends(get_session)):
    if not crud.get_product(session, pid):
        raise HTTPException(status_code=404, detail="not found")
    return crud.get_recipe(session, pid)

@router.put("/products/{pid}/ingredients", response_model=List[RecipeLineOut])
def replace_product_ingredients(pid: int, payload: RecipeIn, user: str = Depends(require_user), session: Session = Depends(get_session)):
    if not crud.get_product(session, pid):
        raise HTTPException(status_code=404, detail="not found")
    try:
        return crud.replace_recipe(session, pid, [line.model_dump() for line in payload.ingredients])
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ---------- Ingredients ----------

@router.get("/ingredients", response_model=List[IngredientOut])
def list_ingredients(session: Session = Depends(get_session)):
    return crud.get_ingredients(session)

@router.post("/ingredients", response_model=IngredientOut)
def create_ingredient(payload: IngredientIn, user: str = Depends(require_user), session: Session = Depends(get_session)):
    return crud.create_ingredient(session, payload.model_dump())

@router.put("/ingredients/{iid}", response_model=IngredientOut)
def update_ingredient(iid: int, payload: IngredientUpdate, user: str = Depends(require_user), session: Session = Depends(get_session)):
    i = crud.update_ingredient(session, iid, payload.model_dump())
    if not i:
        raise HTTPException(status_code=404, detail="not found")
    return i

@router.delete("/ingredients/{iid}", response_model=DeletedOut)
def delete_ingredient(iid: int, user: str = Depends(require_user), session: Session = Depends(get_session)):
    if not crud.delete_ingredient(session, iid):
        raise HTTPException(status_code=404, detail="not found")
    return DeletedOut()


# ---------- Employees ----------

def employee_out(e: Employee) -> EmployeeOut:
    return EmployeeOut(id=e.id, name=e.name, role=e.role, salary=e.wage)

def employee_data(payload: EmployeeIn) -> dict:
    return {"name": payload.name, "role": payload.role, "wage": payload.salary}

@router.get("/employees", response_model=List[EmployeeOut])
def list_employees(session: Session = Depends(get_session)):
    return [employee_out(e) for e in crud.get_employees(session)]

@router.post("/employees", response_model=EmployeeOut)
def create_employee(payload: EmployeeIn, user: str = Depends(require_user), session: Session = Depends(get_session)):
    return employee_out(crud.create_employee(session, employee_data(payload)))

@router.put("/employees/{eid}", response_model=EmployeeOut)
def update_employee(eid: int, payload: EmployeeIn, user: str = Depends(require_user), session: Session = Depends(get_session)):
    e = crud.update_employee(session, eid, employee_data(payload))
    if not e:
        raise HTTPException(status_code=404, detail="not found")
    return employee_out(e)

@router.delete("/employees/{eid}", response_model=DeletedOut)
def delete_employee(eid: int, user: str = Depends(require_user), session: Session = Depends(get_session)):
    if not crud.delete_employee(session, eid):
        raise HTTPException(status_code=404, detail="not found")
    return DeletedOut()
