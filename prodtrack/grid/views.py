# prodtrack/grid/views.py
"""Column layouts for each admin page and the loaders that feed them."""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from sqlmodel import Session, select

from ..auth import RequestContext
from ..errors import NotFoundError, ValidationError
from ..models.orders import OrderStatus
from ..models.quality import AppraisalType, PerformanceAppraisal, Severity
from ..services import alerts, clients, operators, orders, production_records, products, work_plans
from ..services.appraisals import appraisal_details
from ..services.crud import page_info
from .datagrid import ASC, Column, DataGrid


def _nested(*path: str) -> Callable[[Dict], Any]:
    def get(row: Dict) -> Any:
        value: Any = row
        for key in path:
            if value is None:
                return None
            value = value.get(key) if isinstance(value, dict) else getattr(value, key, None)
        return value
    return get


def _options(enum_cls) -> tuple:
    return tuple((m.value, m.value.replace("_", " ").title()) for m in enum_cls)


ACTIVE_OPTIONS = (("true", "Active"), ("false", "Inactive"))
RESOLVED_OPTIONS = (("true", "Resolved"), ("false", "Open"))


def _status_label(value, row) -> str:
    return "Active" if value else "Inactive"


@dataclass(frozen=True)
class GridView:
    name: str
    columns: Sequence[Column]
    load: Callable[[Session, RequestContext], List[Any]]


def _load_appraisals(session: Session, ctx: RequestContext) -> List[Dict]:
    rows = session.exec(
        select(PerformanceAppraisal)
        .where(PerformanceAppraisal.company_id == ctx.company_id)
        .order_by(PerformanceAppraisal.appraisal_date.desc(), PerformanceAppraisal.created_at.desc())
    ).all()
    return appraisal_details(session, rows)


VIEWS: Dict[str, GridView] = {
    "clients": GridView(
        name="clients",
        columns=[
            Column("name", "Name", sortable=True),
            Column("region", "Region", sortable=True, filterable=True),
            Column("department", "Department", sortable=True),
            Column("contact_person", "Contact", sortable=True),
            Column("phone", "Phone"),
            Column("email", "Email", sortable=True),
            Column("is_active", "Status", sortable=True, filterable=True, filter_options=ACTIVE_OPTIONS,
                   render=_status_label, width="100px"),
        ],
        load=lambda s, ctx: clients.list_clients(s, ctx),
    ),
    "operators": GridView(
        name="operators",
        columns=[
            Column("employee_id", "Employee ID", sortable=True, width="120px"),
            Column("full_name", "Name", sortable=True),
            Column("skills", "Skills", accessor=lambda o: ", ".join(o.skills or [])),
            Column("hire_date", "Hire date", sortable=True),
            Column("is_active", "Status", sortable=True, filterable=True, filter_options=ACTIVE_OPTIONS,
                   render=_status_label, width="100px"),
        ],
        load=lambda s, ctx: operators.list_operators(s, ctx),
    ),
    "products": GridView(
        name="products",
        columns=[
            Column("code", "Code", sortable=True, width="120px"),
            Column("name", "Name", sortable=True),
            Column("color", "Color", sortable=True, filterable=True),
            Column("material", "Material", sortable=True, filterable=True),
            Column("standard_time", "Std. time", sortable=True),
            Column("difficulty_level", "Difficulty", sortable=True, filterable=True,
                   filter_options=tuple((str(i), str(i)) for i in range(1, 6))),
            Column("is_active", "Status", sortable=True, filterable=True, filter_options=ACTIVE_OPTIONS,
                   render=_status_label, width="100px"),
        ],
        load=lambda s, ctx: products.list_products(s, ctx),
    ),
    "orders": GridView(
        name="orders",
        columns=[
            Column("po_no", "PO No.", sortable=True, width="140px"),
            Column("client", "Client", sortable=True, accessor=_nested("client", "name")),
            Column("delivery_date", "Delivery", sortable=True),
            Column("priority", "Priority", sortable=True, filterable=True,
                   filter_options=(("1", "Normal"), ("2", "High"), ("3", "Urgent"))),
            Column("status", "Status", sortable=True, filterable=True, filter_options=_options(OrderStatus)),
            Column("items", "Items", sortable=True, accessor=lambda o: len(o["items"])),
            Column("work_plan_count", "Work plans", sortable=True),
        ],
        load=lambda s, ctx: orders.list_orders(s, ctx),
    ),
    "work-plans": GridView(
        name="work-plans",
        columns=[
            Column("planned_date", "Date", sortable=True),
            Column("operator", "Operator", sortable=True, accessor=_nested("operator", "full_name")),
            Column("stage", "Stage", sortable=True, accessor=_nested("stage", "name"), filterable=True),
            Column("product", "Product", sortable=True, accessor=_nested("product", "name")),
            Column("target_quantity", "Target", sortable=True),
            Column("production_order", "PO", sortable=True, accessor=_nested("production_order", "po_no")),
            Column("is_overtime", "Overtime", sortable=True, filterable=True,
                   filter_options=(("true", "Overtime"), ("false", "Regular"))),
        ],
        load=lambda s, ctx: work_plans.list_work_plans(s, ctx),
    ),
    "production-records": GridView(
        name="production-records",
        columns=[
            Column("recorded_date", "Date", sortable=True),
            Column("operator", "Operator", sortable=True, accessor=_nested("work_plan", "operator", "full_name")),
            Column("stage", "Stage", sortable=True, accessor=_nested("work_plan", "stage", "name"), filterable=True),
            Column("product", "Product", sortable=True, accessor=_nested("work_plan", "product", "name")),
            Column("completed_quantity", "Completed", sortable=True),
            Column("good_quantity", "Good", sortable=True),
            Column("reject_quantity", "Reject", sortable=True),
            Column("reject_reason", "Reject reason", sortable=True),
        ],
        load=lambda s, ctx: production_records.list_records(s, ctx),
    ),
    "appraisals": GridView(
        name="appraisals",
        columns=[
            Column("appraisal_date", "Date", sortable=True),
            Column("operator", "Operator", sortable=True, accessor=_nested("operator", "full_name")),
            Column("appraisal_type", "Type", sortable=True, filterable=True, filter_options=_options(AppraisalType)),
            Column("category", "Category", sortable=True, filterable=True),
            Column("severity", "Severity", sortable=True, filterable=True, filter_options=_options(Severity)),
            Column("description", "Description"),
            Column("is_resolved", "Resolved", sortable=True, filterable=True, filter_options=RESOLVED_OPTIONS),
        ],
        load=_load_appraisals,
    ),
    "alerts": GridView(
        name="alerts",
        columns=[
            Column("created_at", "Raised", sortable=True),
            Column("severity", "Severity", sortable=True, filterable=True, filter_options=_options(Severity)),
            Column("alert_type", "Type", sortable=True, filterable=True),
            Column("title", "Title", sortable=True),
            Column("message", "Message"),
            Column("is_resolved", "Resolved", sortable=True, filterable=True, filter_options=RESOLVED_OPTIONS),
        ],
        load=lambda s, ctx: alerts.list_alerts(s, ctx),
    ),
}


def run_view(
    session: Session,
    ctx: RequestContext,
    view: str,
    search: str = "",
    sort: Optional[str] = None,
    direction: str = ASC,
    page: int = 1,
    page_size: int = 10,
    filters: Sequence[str] = (),
) -> Dict[str, Any]:
    """
    Load the tenant's rows for ``view`` and return one page of the grid.
    ``filters`` are ``"<column>:<value>"`` strings.
    """
    layout = VIEWS.get(view)
    if layout is None:
        raise NotFoundError(f"Unknown grid view: {view}")

    grid: DataGrid = DataGrid(columns=layout.columns, data=layout.load(session, ctx), page_size=page_size)
    try:
        for raw in filters:
            key, sep, value = raw.partition(":")
            if not sep:
                raise ValidationError.for_field("filter", f"Expected <column>:<value>, got {raw!r}")
            grid.set_filter(key, value)
        grid.search(search)
        grid.sort_by(sort, direction)
    except (KeyError, ValueError) as e:
        raise ValidationError.for_field("grid", e.args[0] if e.args else str(e))
    grid.go_to(page)

    total = len(grid.rows())
    return {
        "columns": [c.to_dict() for c in layout.columns],
        "data": grid.render_page(),
        "pagination": page_info(grid.current_page, page_size, total),
        "page_window": grid.page_window(),
        "summary": grid.summary(),
    }
