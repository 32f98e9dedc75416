import json
from enum import Enum
from typing import Optional, Set
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field as PField, field_serializer, model_validator
from sqlmodel import SQLModel, Field

from ..utils.helpers import utcnow


class Role(str, Enum):
    ADMIN = "admin"
    INPUTDATA = "inputdata"
    SUPERADMIN = "superadmin"


class Weekday(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @property
    def position(self) -> int:
        return list(Weekday).index(self)

    @classmethod
    def for_date(cls, d) -> "Weekday":
        return list(cls)[d.weekday()]


def _ordered(days: Set[Weekday]) -> list:
    return [d.value for d in sorted(days, key=lambda d: d.position)]


class CompanySettings(BaseModel):
    """
    Typed per-company configuration.

    Stored on ``Company.settings_json`` with the camelCase keys
    ``workingDays`` / ``overtimeDays`` / ``rejectLimit``.
    """
    model_config = ConfigDict(populate_by_name=True)

    working_days: Set[Weekday] = PField(
        default_factory=lambda: {
            Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY, Weekday.THURSDAY, Weekday.FRIDAY,
        },
        alias="workingDays",
    )
    overtime_days: Set[Weekday] = PField(
        default_factory=lambda: {Weekday.SATURDAY, Weekday.SUNDAY},
        alias="overtimeDays",
    )
    reject_limit: int = PField(default=10, ge=0, alias="rejectLimit")

    @model_validator(mode="after")
    def _days_disjoint(self) -> "CompanySettings":
        both = self.working_days & self.overtime_days
        if both:
            names = ", ".join(_ordered(both))
            raise ValueError(f"days cannot be both working and overtime: {names}")
        return self

    @field_serializer("working_days", "overtime_days")
    def _serialize_days(self, days: Set[Weekday]):
        return _ordered(days)

    def to_json(self) -> str:
        return json.dumps(self.model_dump(by_alias=True))

    @classmethod
    def from_json(cls, raw: Optional[str]) -> "CompanySettings":
        if not raw:
            return cls()
        return cls.model_validate(json.loads(raw))


class Company(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    code: str = Field(index=True, unique=True)
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    settings_json: str = Field(default_factory=lambda: CompanySettings().to_json())
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)

    def get_settings(self) -> CompanySettings:
        return CompanySettings.from_json(self.settings_json)

    def set_settings(self, value: CompanySettings) -> None:
        self.settings_json = value.to_json()


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    company_id: int = Field(foreign_key="company.id", index=True)
    username: str = Field(index=True, unique=True)
    full_name: str
    email: Optional[str] = None
    password_hash: str
    role: str = Role.INPUTDATA.value  # admin / inputdata / superadmin
    is_active: bool = True
    last_login: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
