from .tenant import Company, User, Role, Weekday, CompanySettings
from .master import Client, Operator, Product, ProductionStage, MonthlyTarget
from .orders import ProductionOrder, ProductionOrderItem, OrderStatus, ORDER_TRANSITIONS
from .planning import WorkPlan, ProductionRecord
from .quality import PerformanceAppraisal, Alert, AppraisalType, Severity, SEVERITY_RANK

__all__ = [
    "Company",
    "User",
    "Role",
    "Weekday",
    "CompanySettings",
    "Client",
    "Operator",
    "Product",
    "ProductionStage",
    "MonthlyTarget",
    "ProductionOrder",
    "ProductionOrderItem",
    "OrderStatus",
    "ORDER_TRANSITIONS",
    "WorkPlan",
    "ProductionRecord",
    "PerformanceAppraisal",
    "Alert",
    "AppraisalType",
    "Severity",
    "SEVERITY_RANK",
]
