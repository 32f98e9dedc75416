# prodtrack/grid/datagrid.py
"""
Generic client-side data grid: search, per-column filters, sorting,
pagination and row actions over an in-memory list of rows.

A grid is a plain state object. Every query (``rows``, ``page_rows``,
``total_pages``...) is derived from the current state on demand, so the
grid never holds a stale view of its data.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

ALL = "all"
ASC = "asc"
DESC = "desc"
WINDOW = 5


def stringify(value: Any) -> str:
    """Text form used by search and filter matching."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (date, datetime, time)):
        return value.isoformat()
    return str(value)


def _sort_key(value: Any) -> Tuple[int, Any]:
    """
    (type rank, comparable value). Values of one kind compare naturally;
    a column mixing kinds groups them by rank instead of raising.
    """
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, (bool, int, float, Decimal)):
        return 0, value
    if isinstance(value, str):
        return 1, value.casefold()
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return 2, value
    if isinstance(value, date):
        return 3, value
    if isinstance(value, time):
        return 4, value.isoformat()
    return 5, stringify(value).casefold()


@dataclass(frozen=True)
class Column(Generic[T]):
    key: str
    title: str
    accessor: Optional[Callable[[T], Any]] = None
    sortable: bool = False
    filterable: bool = False
    filter_options: Tuple[Tuple[str, str], ...] = ()  # (value, label)
    render: Optional[Callable[[Any, T], Any]] = None
    width: Optional[str] = None

    def value(self, row: T) -> Any:
        if self.accessor is not None:
            return self.accessor(row)
        if isinstance(row, dict):
            return row.get(self.key)
        return getattr(row, self.key, None)

    def display(self, row: T) -> Any:
        value = self.value(row)
        return self.render(value, row) if self.render else value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "title": self.title,
            "sortable": self.sortable,
            "filterable": self.filterable,
            "filter_options": [{"value": v, "label": l} for v, l in self.filter_options],
            "width": self.width,
        }


@dataclass
class DataGrid(Generic[T]):
    """
    State of one grid. Callbacks are optional; ``on_delete`` may raise to
    signal failure, in which case the confirmation stays open with
    ``delete_error`` set.
    """
    columns: Sequence[Column[T]]
    data: List[T] = field(default_factory=list)
    page_size: int = 10
    searchable: bool = True
    on_view: Optional[Callable[[T], Any]] = None
    on_edit: Optional[Callable[[T], Any]] = None
    on_duplicate: Optional[Callable[[T], Any]] = None
    on_delete: Optional[Callable[[T], Any]] = None
    on_refresh: Optional[Callable[[], Any]] = None

    search_term: str = ""
    filters: Dict[str, str] = field(default_factory=dict)
    sort_column: Optional[str] = None
    sort_direction: str = ASC
    current_page: int = 1
    pending_delete: Optional[T] = None
    deleting: bool = False
    delete_error: Optional[str] = None

    def __post_init__(self):
        if self.page_size < 1:
            raise ValueError("page_size must be at least 1")
        self._by_key = {c.key: c for c in self.columns}

    # ---------- state changes ----------

    def column(self, key: str) -> Column[T]:
        try:
            return self._by_key[key]
        except KeyError:
            raise KeyError(f"Unknown column: {key}") from None

    def set_data(self, rows: Sequence[T]) -> None:
        self.data = list(rows)

    def search(self, term: str) -> None:
        self.search_term = term or ""
        self.current_page = 1

    def set_filter(self, key: str, value: Optional[str]) -> None:
        """``ALL`` (or an empty value) removes the filter."""
        self.column(key)
        if value is None or value == "" or value == ALL:
            self.filters.pop(key, None)
        else:
            self.filters[key] = value
        self.current_page = 1

    def clear(self) -> None:
        self.search_term = ""
        self.filters.clear()
        self.current_page = 1

    def toggle_sort(self, key: str) -> None:
        """Same column flips direction; a new column starts ascending."""
        if not self.column(key).sortable:
            return
        if self.sort_column == key:
            self.sort_direction = DESC if self.sort_direction == ASC else ASC
        else:
            self.sort_column = key
            self.sort_direction = ASC

    def sort_by(self, key: Optional[str], direction: str = ASC) -> None:
        if key is None:
            self.sort_column = None
            self.sort_direction = ASC
            return
        if direction not in (ASC, DESC):
            raise ValueError(f"Invalid sort direction: {direction}")
        if not self.column(key).sortable:
            return
        self.sort_column = key
        self.sort_direction = direction

    def go_to(self, page: int) -> None:
        # past the last page is allowed and yields an empty page
        self.current_page = max(1, page)

    def next_page(self) -> None:
        if self.current_page < self.total_pages():
            self.current_page += 1

    def previous_page(self) -> None:
        if self.current_page > 1:
            self.current_page -= 1

    # ---------- derived views ----------

    def _matches_search(self, row: T) -> bool:
        term = self.search_term.strip().casefold()
        if not term or not self.searchable:
            return True
        for col in self.columns:
            value = col.value(row)
            if value is None:
                continue
            if term in stringify(value).casefold():
                return True
        return False

    def _matches_filters(self, row: T) -> bool:
        return all(stringify(self.column(k).value(row)) == v for k, v in self.filters.items())

    def rows(self) -> List[T]:
        """Filtered, searched and sorted rows (all pages)."""
        out = [r for r in self.data if self._matches_search(r) and self._matches_filters(r)]
        if self.sort_column is None:
            return out

        col = self.column(self.sort_column)
        present = [r for r in out if col.value(r) is not None]
        missing = [r for r in out if col.value(r) is None]
        present.sort(key=lambda r: _sort_key(col.value(r)), reverse=self.sort_direction == DESC)
        return present + missing

    def total_pages(self) -> int:
        total = len(self.rows())
        return (total + self.page_size - 1) // self.page_size

    def page_rows(self) -> List[T]:
        start = (self.current_page - 1) * self.page_size
        return self.rows()[start:start + self.page_size]

    def page_window(self) -> List[int]:
        """
        Up to five page numbers centred on the current page, shifted to
        stay inside [1, total_pages] near either end.
        """
        total = self.total_pages()
        if total <= WINDOW:
            return list(range(1, total + 1))
        current = min(self.current_page, total)
        if current <= 3:
            return list(range(1, WINDOW + 1))
        if current >= total - 2:
            return list(range(total - WINDOW + 1, total + 1))
        return list(range(current - 2, current + 3))

    def summary(self) -> str:
        total = len(self.rows())
        if total == 0:
            return "Showing 0 of 0 results"
        start = (self.current_page - 1) * self.page_size
        if start >= total:
            return f"Showing 0 of {total} results"
        end = min(start + self.page_size, total)
        return f"Showing {start + 1} to {end} of {total} results"

    def render_page(self) -> List[Dict[str, Any]]:
        return [{c.key: c.display(r) for c in self.columns} for r in self.page_rows()]

    # ---------- row actions ----------

    def view(self, row: T) -> Any:
        return self.on_view(row) if self.on_view else None

    def edit(self, row: T) -> Any:
        return self.on_edit(row) if self.on_edit else None

    def duplicate(self, row: T) -> Any:
        return self.on_duplicate(row) if self.on_duplicate else None

    def request_delete(self, row: T) -> None:
        self.pending_delete = row
        self.delete_error = None

    def cancel_delete(self) -> None:
        if self.deleting:
            return
        self.pending_delete = None
        self.delete_error = None

    def confirm_delete(self) -> bool:
        """
        Run ``on_delete`` for the pending row. Returns True on success.
        A second confirm while one is in flight is ignored.
        """
        if self.pending_delete is None or self.deleting or self.on_delete is None:
            return False
        self.deleting = True
        try:
            self.on_delete(self.pending_delete)
        except Exception as e:
            logger.warning("Row delete failed: %s", e)
            self.delete_error = str(e) or e.__class__.__name__
            return False
        finally:
            self.deleting = False

        self.pending_delete = None
        self.delete_error = None
        if self.on_refresh:
            self.on_refresh()
        return True
