from enum import Enum
from typing import Optional
from datetime import datetime, date

from sqlmodel import SQLModel, Field

from ..utils.helpers import utcnow


class AppraisalType(str, Enum):
    SUCCESS = "success"
    HUMAN_ERROR = "human_error"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


SEVERITY_RANK = {
    Severity.LOW.value: 1,
    Severity.MEDIUM.value: 2,
    Severity.HIGH.value: 3,
    Severity.CRITICAL.value: 4,
}


class PerformanceAppraisal(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    company_id: int = Field(foreign_key="company.id", index=True)
    operator_id: int = Field(foreign_key="operator.id", index=True)
    production_record_id: Optional[int] = Field(default=None, foreign_key="productionrecord.id")

    appraisal_type: str  # success / human_error
    category: str
    description: str
    severity: Optional[str] = None
    impact: Optional[str] = None
    corrective_action: Optional[str] = None
    prevention_action: Optional[str] = None
    appraisal_date: date

    recorded_by: int = Field(foreign_key="user.id")
    is_resolved: bool = False
    resolved_by: Optional[int] = Field(default=None, foreign_key="user.id")
    resolved_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Alert(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    company_id: int = Field(foreign_key="company.id", index=True)
    alert_type: str  # e.g. reject_limit_exceeded
    severity: str = Severity.MEDIUM.value
    title: str
    message: str
    related_record_id: Optional[int] = None
    related_record_type: Optional[str] = None
    is_resolved: bool = Field(default=False, index=True)
    resolved_by: Optional[int] = Field(default=None, foreign_key="user.id")
    resolved_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
