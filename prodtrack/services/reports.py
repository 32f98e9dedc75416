# prodtrack/services/reports.py
"""
Production reports.

Rows are pulled with plain ``select`` queries for one tenant and aggregated
with pandas. Every report works on the same merged frame: one row per work
plan in the date range, with the sum of its production records attached
(plans without records count as zero output).

Percentages are rounded to one decimal and are 0 when the denominator is 0.
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
from sqlmodel import Session, select

from ..auth import RequestContext
from ..errors import ValidationError
from ..models.master import MonthlyTarget, Operator, Product
from ..models.planning import ProductionRecord, WorkPlan
from ..models.quality import Alert
from ..utils.helpers import month_key, week_start_for
from .crud import count_where

logger = logging.getLogger(__name__)

PLAN_COLS = ["id", "planned_date", "operator_id", "product_id", "target_quantity"]
RECORD_COLS = [
    "work_plan_id", "recorded_date", "completed_quantity", "good_quantity",
    "reject_quantity", "reject_reason",
]
QTY_COLS = ["completed_quantity", "good_quantity", "reject_quantity"]
UNSPECIFIED_REASON = "Unspecified"


def _frame(rows, columns: List[str]) -> pd.DataFrame:
    return pd.DataFrame([{c: getattr(r, c) for c in columns} for r in rows], columns=columns)


def _pct(num: pd.Series, den: pd.Series) -> pd.Series:
    out = (num / den.where(den != 0)) * 100.0
    return out.fillna(0.0).round(1)


def _records(rows) -> List[Dict[str, Any]]:
    """DataFrame rows -> JSON-friendly dicts with plain Python scalars."""
    return [
        {k: (v.item() if hasattr(v, "item") else v) for k, v in row.items()}
        for row in rows.to_dict(orient="records")
    ]


def default_range(today: Optional[date] = None) -> Tuple[date, date]:
    """Current week, Monday through Sunday."""
    start = week_start_for(today or date.today())
    return start, start + timedelta(days=6)


def _plan_frame(session: Session, company_id: int, start: date, end: date) -> Tuple[pd.DataFrame, pd.DataFrame]:
    plans = session.exec(
        select(WorkPlan).where(
            WorkPlan.company_id == company_id,
            WorkPlan.planned_date >= start,
            WorkPlan.planned_date <= end,
        )
    ).all()
    plan_df = _frame(plans, PLAN_COLS).astype(
        {"id": "int64", "operator_id": "int64", "product_id": "int64", "target_quantity": "int64"}
    )

    records = session.exec(
        select(ProductionRecord).where(
            ProductionRecord.company_id == company_id,
            ProductionRecord.work_plan_id.in_([p.id for p in plans] or [0]),
        )
    ).all()
    rec_df = _frame(records, RECORD_COLS).astype({"work_plan_id": "int64", **{c: "int64" for c in QTY_COLS}})

    per_plan = rec_df.groupby("work_plan_id", as_index=False)[QTY_COLS].sum()
    merged = plan_df.merge(per_plan, how="left", left_on="id", right_on="work_plan_id")
    merged[QTY_COLS] = merged[QTY_COLS].fillna(0).astype(int)
    return merged, rec_df


def target_achievement(merged: pd.DataFrame) -> List[Dict[str, Any]]:
    if merged.empty:
        return []
    daily = (
        merged.groupby("planned_date", as_index=False)
        .agg(target=("target_quantity", "sum"), actual=("good_quantity", "sum"))
        .sort_values("planned_date")
    )
    daily["percentage"] = _pct(daily["actual"], daily["target"])
    daily = daily.rename(columns={"planned_date": "date"})
    return _records(daily[["date", "target", "actual", "percentage"]])


def _performance(merged: pd.DataFrame, key: str) -> pd.DataFrame:
    return (
        merged.groupby(key, as_index=False)
        .agg(
            target_quantity=("target_quantity", "sum"),
            completed_quantity=("completed_quantity", "sum"),
            good_quantity=("good_quantity", "sum"),
            reject_quantity=("reject_quantity", "sum"),
        )
    )


def operator_performance(session: Session, merged: pd.DataFrame) -> List[Dict[str, Any]]:
    if merged.empty:
        return []
    perf = _performance(merged, "operator_id")
    # completed over target
    perf["achievement_rate"] = _pct(perf["completed_quantity"], perf["target_quantity"])
    names = {
        o.id: o.full_name for o in session.exec(
            select(Operator).where(Operator.id.in_(perf["operator_id"].tolist()))
        ).all()
    }
    perf["operator_name"] = perf["operator_id"].map(names)
    perf = perf.sort_values(["achievement_rate", "operator_name"], ascending=[False, True])
    return _records(perf[[
        "operator_id", "operator_name", "target_quantity", "completed_quantity",
        "good_quantity", "reject_quantity", "achievement_rate",
    ]])


def reject_analysis(rec_df: pd.DataFrame) -> List[Dict[str, Any]]:
    rejects = rec_df[rec_df["reject_quantity"] > 0].copy()
    if rejects.empty:
        return []
    rejects["reason"] = rejects["reject_reason"].fillna(UNSPECIFIED_REASON)
    by_reason = (
        rejects.groupby("reason", as_index=False)
        .agg(count=("reject_quantity", "sum"))
        .sort_values(["count", "reason"], ascending=[False, True])
    )
    total = by_reason["count"].sum()
    by_reason["percentage"] = (by_reason["count"] / total * 100.0).round(1)
    return _records(by_reason)


def product_performance(session: Session, merged: pd.DataFrame) -> List[Dict[str, Any]]:
    if merged.empty:
        return []
    perf = _performance(merged, "product_id")
    products = {
        p.id: p for p in session.exec(
            select(Product).where(Product.id.in_(perf["product_id"].tolist()))
        ).all()
    }
    perf["product_code"] = perf["product_id"].map(lambda i: products[i].code if i in products else None)
    perf["product_name"] = perf["product_id"].map(lambda i: products[i].name if i in products else None)
    perf = perf.sort_values("product_code")
    return _records(perf[[
        "product_id", "product_code", "product_name", "target_quantity",
        "completed_quantity", "good_quantity", "reject_quantity",
    ]])


def production_report(
    session: Session,
    ctx: RequestContext,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> Dict[str, Any]:
    if start is None or end is None:
        d_start, d_end = default_range()
        start = start or d_start
        end = end or d_end
    if start > end:
        raise ValidationError.for_field("start", "start must not be after end")

    merged, rec_df = _plan_frame(session, ctx.company_id, start, end)
    achievement = target_achievement(merged)
    rejects = reject_analysis(rec_df)

    total_target = int(merged["target_quantity"].sum()) if not merged.empty else 0
    total_good = int(merged["good_quantity"].sum()) if not merged.empty else 0
    summary = {
        "total_target": total_target,
        "total_actual": total_good,
        "total_rejects": int(sum(r["count"] for r in rejects)),
        "average_achievement": (
            round(sum(d["percentage"] for d in achievement) / len(achievement), 1) if achievement else 0.0
        ),
    }
    logger.debug("Production report company=%s %s..%s plans=%d", ctx.company_id, start, end, len(merged))
    return {
        "start": start,
        "end": end,
        "summary": summary,
        "target_achievement": achievement,
        "operator_performance": operator_performance(session, merged),
        "reject_analysis": rejects,
        "product_performance": product_performance(session, merged),
    }


def _month_bounds(month: str) -> Tuple[date, date]:
    year, mon = (int(x) for x in month.split("-"))
    first = date(year, mon, 1)
    nxt = date(year + 1, 1, 1) if mon == 12 else date(year, mon + 1, 1)
    return first, nxt - timedelta(days=1)


def _good_by_product(session: Session, company_id: int, start: date, end: date) -> Dict[int, int]:
    rows = session.exec(
        select(WorkPlan.product_id, ProductionRecord.good_quantity)
        .select_from(ProductionRecord)
        .join(WorkPlan, WorkPlan.id == ProductionRecord.work_plan_id)
        .where(
            ProductionRecord.company_id == company_id,
            ProductionRecord.recorded_date >= start,
            ProductionRecord.recorded_date <= end,
        )
    ).all()
    df = pd.DataFrame([tuple(r) for r in rows], columns=["product_id", "good_quantity"])
    if df.empty:
        return {}
    return {int(k): int(v) for k, v in df.groupby("product_id")["good_quantity"].sum().items()}


def monthly_targets_report(session: Session, ctx: RequestContext, month: Optional[str] = None) -> Dict[str, Any]:
    """Each monthly target of ``month`` with the good quantity recorded so far."""
    month = month or month_key(date.today())
    start, end = _month_bounds(month)

    targets = session.exec(
        select(MonthlyTarget).where(MonthlyTarget.company_id == ctx.company_id, MonthlyTarget.month == month)
    ).all()
    if not targets:
        return {"month": month, "data": []}

    df = _frame(targets, ["id", "product_id", "target_quantity"])
    achieved = _good_by_product(session, ctx.company_id, start, end)
    products = {
        p.id: p for p in session.exec(
            select(Product).where(Product.id.in_(df["product_id"].tolist()))
        ).all()
    }
    df["achieved_quantity"] = df["product_id"].map(lambda i: achieved.get(i, 0)).astype(int)
    df["percentage"] = _pct(df["achieved_quantity"], df["target_quantity"])
    df["product_code"] = df["product_id"].map(lambda i: products[i].code)
    df["product_name"] = df["product_id"].map(lambda i: products[i].name)
    df = df.sort_values("product_code")
    return {"month": month, "data": _records(df)}


def dashboard(session: Session, ctx: RequestContext, today: Optional[date] = None) -> Dict[str, Any]:
    today = today or date.today()
    week = week_start_for(today)
    month = month_key(today)

    active_operators = count_where(
        session, Operator, Operator.company_id == ctx.company_id, Operator.is_active == True  # noqa: E712
    )
    plans_this_week = count_where(
        session, WorkPlan, WorkPlan.company_id == ctx.company_id, WorkPlan.week_start == week
    )
    unresolved_alerts = count_where(
        session, Alert, Alert.company_id == ctx.company_id, Alert.is_resolved == False  # noqa: E712
    )

    month_target = sum(
        t.target_quantity for t in session.exec(
            select(MonthlyTarget).where(MonthlyTarget.company_id == ctx.company_id, MonthlyTarget.month == month)
        ).all()
    )
    first, _ = _month_bounds(month)
    month_good = sum(_good_by_product(session, ctx.company_id, first, today).values())
    return {
        "active_operators": active_operators,
        "work_plans_this_week": plans_this_week,
        "unresolved_alerts": unresolved_alerts,
        "month": month,
        "month_target": month_target,
        "month_to_date_good": month_good,
        "month_to_date_achievement": round(month_good / month_target * 100.0, 1) if month_target else 0.0,
    }
