# prodtrack/schemas.py
"""
Request models. Field-level problems surface as 400 ``Invalid input data``
with one ``details`` entry per field.
"""

from datetime import date, time
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from .models.orders import OrderStatus
from .models.quality import AppraisalType, Severity
from .models.tenant import Role


class _Payload(BaseModel):
    @field_validator("*", mode="before")
    @classmethod
    def _strip_strings(cls, v):
        return v.strip() if isinstance(v, str) else v


class _EmailMixin(BaseModel):
    email: Optional[EmailStr] = None

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


# ============ Auth / tenants ============

class LoginRequest(_Payload):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class CompanyCreate(_Payload, _EmailMixin):
    name: str = Field(min_length=1)
    code: str = Field(min_length=1, max_length=32)
    address: Optional[str] = None
    phone: Optional[str] = None


class CompanyUpdate(_Payload, _EmailMixin):
    name: str = Field(min_length=1)
    address: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool = True


class UserCreate(_Payload, _EmailMixin):
    username: str = Field(min_length=3)
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=1)
    role: Role = Role.ADMIN


# ============ Master data ============

class ClientIn(_Payload, _EmailMixin):
    name: str = Field(min_length=1)
    region: Optional[str] = None
    department: Optional[str] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    is_active: bool = True


class OperatorIn(_Payload):
    employee_id: str = Field(min_length=1)
    full_name: str = Field(min_length=1)
    skills: List[str] = Field(default_factory=list)
    hire_date: Optional[date] = None
    is_active: bool = True

    @field_validator("skills")
    @classmethod
    def _dedupe_skills(cls, v: List[str]) -> List[str]:
        seen = []
        for code in (s.strip() for s in v):
            if code and code not in seen:
                seen.append(code)
        return seen


class ProductIn(_Payload):
    code: str = Field(min_length=1)
    name: str = Field(min_length=1)
    color: Optional[str] = None
    texture: Optional[str] = None
    material: Optional[str] = None
    notes: Optional[str] = None
    standard_time: Optional[float] = Field(default=None, gt=0)
    difficulty_level: int = Field(default=3, ge=1, le=5)
    is_active: bool = True


class StageIn(_Payload):
    code: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: Optional[str] = None
    background_color: str = Field(default="#CCCCCC", pattern=r"^#[0-9A-Fa-f]{6}$")
    display_order: int = Field(default=0, ge=0)
    is_active: bool = True


class MonthlyTargetIn(_Payload):
    product_id: int = Field(gt=0)
    month: str = Field(pattern=r"^\d{4}-(0[1-9]|1[0-2])$")
    target_quantity: int = Field(ge=0)


# ============ Orders ============

class OrderItemIn(_Payload):
    product_id: int = Field(gt=0)
    qty_ordered: int = Field(gt=0)
    qty_forming: Optional[int] = Field(default=None, gt=0)
    notes: Optional[str] = None


class OrderCreate(_Payload):
    client_id: int = Field(gt=0)
    po_no: str = Field(min_length=1)
    delivery_date: date
    priority: int = Field(default=1, ge=1, le=3)
    status: OrderStatus = OrderStatus.PENDING
    notes: Optional[str] = None
    items: List[OrderItemIn] = Field(min_length=1)


class OrderUpdate(_Payload):
    client_id: int = Field(gt=0)
    delivery_date: date
    priority: int = Field(default=1, ge=1, le=3)
    status: Optional[OrderStatus] = None
    notes: Optional[str] = None
    items: List[OrderItemIn] = Field(min_length=1)


# ============ Planning / production ============

class WorkPlanIn(_Payload):
    operator_id: int = Field(gt=0)
    product_id: int = Field(gt=0)
    production_stage_id: int = Field(gt=0)
    planned_date: date
    target_quantity: int = Field(gt=0)
    week_start: Optional[date] = None
    production_order_id: Optional[int] = None
    production_order_item_id: Optional[int] = None
    decoration_detail: Optional[str] = None
    is_overtime: Optional[bool] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _week_contains_date(self) -> "WorkPlanIn":
        if self.week_start is not None:
            if self.week_start.weekday() != 0:
                raise ValueError("week_start must be a Monday")
            delta = (self.planned_date - self.week_start).days
            if delta < 0 or delta > 6:
                raise ValueError("planned_date must fall within the week starting at week_start")
        if self.production_order_item_id is not None and self.production_order_id is None:
            raise ValueError("production_order_item_id requires production_order_id")
        return self


class _RecordQuantities(_Payload):
    completed_quantity: int = Field(ge=0)
    good_quantity: int = Field(ge=0)
    reject_quantity: int = Field(ge=0)
    reject_reason: Optional[str] = None
    reject_stage: Optional[str] = None
    notes: Optional[str] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    @model_validator(mode="after")
    def _quantities_balance(self):
        if self.good_quantity + self.reject_quantity != self.completed_quantity:
            raise ValueError("Good quantity plus reject quantity must equal completed quantity")
        if self.start_time and self.end_time and self.start_time > self.end_time:
            raise ValueError("start_time must not be after end_time")
        if self.reject_quantity == 0:
            self.reject_reason = None
            self.reject_stage = None
        return self


class ProductionRecordCreate(_RecordQuantities):
    work_plan_id: int = Field(gt=0)
    recorded_date: date = Field(default_factory=date.today)


class ProductionRecordUpdate(_RecordQuantities):
    recorded_date: Optional[date] = None


# ============ Quality ============

class AppraisalCreate(_Payload):
    operator_id: int = Field(gt=0)
    appraisal_type: AppraisalType
    category: str = Field(min_length=1)
    description: str = Field(min_length=1)
    production_record_id: Optional[int] = None
    severity: Optional[Severity] = None
    impact: Optional[str] = None
    corrective_action: Optional[str] = None
    prevention_action: Optional[str] = None
    appraisal_date: Optional[date] = None


class AppraisalUpdate(_Payload):
    appraisal_type: Optional[AppraisalType] = None
    category: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    severity: Optional[Severity] = None
    impact: Optional[str] = None
    corrective_action: Optional[str] = None
    prevention_action: Optional[str] = None
    is_resolved: Optional[bool] = None


class AlertCreate(_Payload):
    alert_type: str = Field(min_length=1)
    title: str = Field(min_length=1)
    message: str = Field(min_length=1)
    severity: Severity = Severity.MEDIUM
    related_record_id: Optional[int] = None
    related_record_type: Optional[str] = None
