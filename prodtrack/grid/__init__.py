from .datagrid import ALL, ASC, DESC, Column, DataGrid, stringify

__all__ = ["ALL", "ASC", "DESC", "Column", "DataGrid", "stringify"]
