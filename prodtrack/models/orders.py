from enum import Enum
from typing import Optional
from datetime import date, datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field

from ..utils.helpers import utcnow


class OrderStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# status -> statuses it may move to
ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED},
    OrderStatus.IN_PROGRESS: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELLED: set(),
}


class ProductionOrder(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("company_id", "po_no"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    company_id: int = Field(foreign_key="company.id", index=True)
    client_id: int = Field(foreign_key="client.id", index=True)
    po_no: str
    delivery_date: date
    priority: int = 1  # 1=normal, 2=high, 3=urgent
    status: str = OrderStatus.PENDING.value
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class ProductionOrderItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    production_order_id: int = Field(foreign_key="productionorder.id", index=True)
    product_id: int = Field(foreign_key="product.id", index=True)
    qty_ordered: int
    qty_forming: int
    notes: Optional[str] = None
