from typing import Optional
from datetime import datetime, date, time

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field

from ..utils.helpers import utcnow


class WorkPlan(SQLModel, table=True):
    """
    One operator producing ``target_quantity`` of a product at a stage
    on ``planned_date``. ``week_start`` is the Monday of that week.
    """
    __table_args__ = (
        UniqueConstraint("company_id", "operator_id", "planned_date", "production_stage_id"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    company_id: int = Field(foreign_key="company.id", index=True)
    week_start: date = Field(index=True)
    operator_id: int = Field(foreign_key="operator.id", index=True)
    production_order_id: Optional[int] = Field(default=None, foreign_key="productionorder.id", index=True)
    production_order_item_id: Optional[int] = Field(default=None, foreign_key="productionorderitem.id")
    product_id: int = Field(foreign_key="product.id", index=True)
    production_stage_id: int = Field(foreign_key="productionstage.id", index=True)
    decoration_detail: Optional[str] = None
    target_quantity: int
    planned_date: date = Field(index=True)
    is_overtime: bool = False
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class ProductionRecord(SQLModel, table=True):
    """Actual daily outcome of a work plan. good + reject == completed."""
    __table_args__ = (UniqueConstraint("work_plan_id", "recorded_date"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    company_id: int = Field(foreign_key="company.id", index=True)
    work_plan_id: int = Field(foreign_key="workplan.id", index=True)
    recorded_date: date = Field(index=True)
    recorded_by: int = Field(foreign_key="user.id")

    completed_quantity: int
    good_quantity: int
    reject_quantity: int
    reject_reason: Optional[str] = None
    reject_stage: Optional[str] = None

    notes: Optional[str] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    created_at: datetime = Field(default_factory=utcnow)
