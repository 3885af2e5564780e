"""
Sales report endpoints.
"""
from datetime import date, datetime, time, timedelta
from typing import Optional
import json
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from butcher_pos.db import get_db
from butcher_pos.reports import daily_summary, product_sales_summary
from butcher_pos.repository import SqlSaleRepository

router = APIRouter(prefix="/reports", tags=["Reports"])


def _range(start: Optional[date], end: Optional[date]):
    start_dt = datetime.combine(start, time.min) if start else None
    end_dt = datetime.combine(end + timedelta(days=1), time.min) if end else None
    return start_dt, end_dt


@router.get("/daily")
def daily(start: Optional[date] = None, end: Optional[date] = None, db: Session = Depends(get_db)):
    sales = SqlSaleRepository(db).list_between(*_range(start, end))
    df = daily_summary(sales)
    df["date"] = df["date"].astype(str)
    return json.loads(df.to_json(orient="records"))


@router.get("/products")
def products(start: Optional[date] = None, end: Optional[date] = None, db: Session = Depends(get_db)):
    sales = SqlSaleRepository(db).list_between(*_range(start, end))
    return json.loads(product_sales_summary(sales).to_json(orient="records"))
