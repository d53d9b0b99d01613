from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional, Union

from tableview.config.model import GlobalConfig
from tableview.core.exceptions import ExportError
from tableview.core.table import TableController
from tableview.export.exporter import export_view
from tableview.export.model import ExportedTable, ExportFormat
from tableview.services.storage import LocalFileSystemStorage, StorageBackend

logger = logging.getLogger(__name__)


class ExportService:
    """
    Produces table exports and hands them to a storage backend.

    Each call performs exactly one write; nothing is queued or retried.
    """

    def __init__(self, storage: StorageBackend) -> None:
        self.storage = storage

    @classmethod
    def from_config(cls, global_config: GlobalConfig) -> ExportService:
        """
        Service writing under the configured ``export_dir``.

        :raises ExportError: if global.json sets no export_dir
        """
        if global_config.export_dir is None:
            raise ExportError("No 'export_dir' configured in global.json")
        return cls(LocalFileSystemStorage(global_config.export_dir))

    def save(self, exported: ExportedTable, *, folder: Optional[str] = None) -> str:
        """
        Write an export buffer and return its storage path.
        """
        path = f"{folder.strip('/')}/{exported.filename}" if folder else exported.filename
        self.storage.write_bytes(path, exported.content)

        logger.info(
            "Export saved",
            extra={"path": path, "n_records": exported.n_records, "n_bytes": len(exported.content)},
        )
        return path

    def export_table(
            self,
            table: TableController,
            fmt: Union[ExportFormat, str],
            *,
            today: Optional[date] = None,
    ) -> str:
        """
        Export a table's current filtered records and save them under a
        folder named after the table.

        :raises ExportError: if the table is not exportable
        """
        if not table.exportable:
            logger.warning("Export refused for non-exportable table", extra={"table": table.name})
            raise ExportError(f"Table '{table.name}' is not exportable")

        exported = export_view(table.view, table.schema, fmt, table_name=table.name, today=today)
        return self.save(exported, folder=table.name)

    def list_exports(self, table_name: str) -> List[str]:
        return self.storage.list_files(table_name)
