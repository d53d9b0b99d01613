"""
Top-level package for the tabular data-view engine.

The engine turns an in-memory record collection plus a field schema into a
filtered, searched and paginated view, and exports that view as CSV or JSON.
Most code should import from submodules such as:
    tableview.core
    tableview.export
    tableview.config
"""

__all__: list[str] = []
