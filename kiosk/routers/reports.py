import datetime as dt
from typing import List
from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy.orm import Session

from .. import reports
from ..db import get_session
from ..schemas import MenuStatOut, ProductUsageOut, XReportOut

router = APIRouter(prefix="/manager", tags=["reports"])

@router.get("/menu-stats", response_model=List[MenuStatOut])
def get_menu_stats(period: str = "day", session: Session = Depends(get_session)):
    return reports.menu_stats(session, period)

@router.get("/reports/x-report", response_model=XReportOut)
def get_x_report(session: Session = Depends(get_session)):
    return reports.x_report(session)

@router.get("/reports/product-usage", response_model=ProductUsageOut)
def get_product_usage(
    start_date: dt.date = Query(alias="startDate"),
    end_date: dt.date = Query(alias="endDate"),
    session: Session = Depends(get_session),
):
    try:
        return reports.product_usage(session, start_date, end_date)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
