# butcher_pos/reports.py
from typing import List
import pandas as pd

from .logging_config import get_logger
from .schemas.sale import Sale, SaleStatus

logger = get_logger("reports")

DAILY_COLUMNS = ["date", "total_sales", "total_amount", "cash_amount", "card_amount", "transfer_amount"]
PRODUCT_COLUMNS = ["product_id", "product_name", "total_qty", "total_amount", "sales_count"]


def _f(value) -> float:
    return float(value) if value is not None else 0.0


def sales_frame(sales: List[Sale]) -> pd.DataFrame:
    """One row per completed sale. Cash is net of change given back."""
    rows = [
        {
            "sale_id": s.id,
            "ts": s.created_at,
            "total": _f(s.total),
            "cash": _f(s.cash_amount) - _f(s.change_amount),
            "card": _f(s.card_amount),
            "transfer": _f(s.transfer_amount),
        }
        for s in sales
        if s.status == SaleStatus.COMPLETED
    ]
    df = pd.DataFrame(rows, columns=["sale_id", "ts", "total", "cash", "card", "transfer"])
    if not df.empty and not pd.api.types.is_datetime64_any_dtype(df["ts"]):
        df["ts"] = pd.to_datetime(df["ts"])
    return df


def daily_summary(sales: List[Sale]) -> pd.DataFrame:
    df = sales_frame(sales)
    if df.empty:
        return pd.DataFrame(columns=DAILY_COLUMNS)

    df["date"] = df["ts"].dt.date
    out = (
        df.groupby("date")
        .agg(
            total_sales=("sale_id", "count"),
            total_amount=("total", "sum"),
            cash_amount=("cash", "sum"),
            card_amount=("card", "sum"),
            transfer_amount=("transfer", "sum"),
        )
        .reset_index()
        .sort_values("date")
    )
    logger.info(f"[REPORT] Daily summary over {len(df)} sale(s), {len(out)} day(s)")
    return out[DAILY_COLUMNS].reset_index(drop=True)


def product_sales_summary(sales: List[Sale]) -> pd.DataFrame:
    """Quantity and amount sold per product, best sellers first."""
    rows = [
        {
            "sale_id": s.id,
            "product_id": item.product_id,
            "product_name": item.product_name,
            "qty": _f(item.qty),
            "amount": _f(item.total),
        }
        for s in sales
        if s.status == SaleStatus.COMPLETED
        for item in s.items
    ]
    if not rows:
        return pd.DataFrame(columns=PRODUCT_COLUMNS)

    df = pd.DataFrame(rows)
    out = (
        df.groupby(["product_id", "product_name"])
        .agg(
            total_qty=("qty", "sum"),
            total_amount=("amount", "sum"),
            sales_count=("sale_id", "nunique"),
        )
        .reset_index()
        .sort_values(["total_amount", "product_name"], ascending=[False, True])
    )
    return out[PRODUCT_COLUMNS].reset_index(drop=True)
