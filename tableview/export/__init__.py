from .exporter import export_filename, export_records, export_view, to_csv_bytes, to_json_bytes
from .model import ExportedTable, ExportFormat

__all__ = [
    "ExportFormat",
    "ExportedTable",
    "export_filename",
    "export_records",
    "export_view",
    "to_csv_bytes",
    "to_json_bytes",
]
