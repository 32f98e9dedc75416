from typing import List, Optional
from datetime import date, datetime

from sqlalchemy import Column, JSON, UniqueConstraint
from sqlmodel import SQLModel, Field

from ..utils.helpers import utcnow


class Client(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    company_id: int = Field(foreign_key="company.id", index=True)
    name: str
    region: Optional[str] = None
    department: Optional[str] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Operator(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("company_id", "employee_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    company_id: int = Field(foreign_key="company.id", index=True)
    employee_id: str
    full_name: str
    skills: List[str] = Field(default_factory=list, sa_column=Column(JSON))  # stage codes
    hire_date: Optional[date] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Product(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("company_id", "code"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    company_id: int = Field(foreign_key="company.id", index=True)
    code: str
    name: str
    color: Optional[str] = None
    texture: Optional[str] = None
    material: Optional[str] = None
    notes: Optional[str] = None
    standard_time: Optional[float] = None  # minutes per piece
    difficulty_level: int = 3  # 1 (easy) .. 5 (hard)
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class ProductionStage(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("company_id", "code"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    company_id: int = Field(foreign_key="company.id", index=True)
    code: str
    name: str
    description: Optional[str] = None
    background_color: str = "#CCCCCC"
    display_order: int = 0
    is_active: bool = True


class MonthlyTarget(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("company_id", "product_id", "month"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    company_id: int = Field(foreign_key="company.id", index=True)
    product_id: int = Field(foreign_key="product.id", index=True)
    month: str  # "YYYY-MM"
    target_quantity: int
    created_at: datetime = Field(default_factory=utcnow)
