from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from tableview.config.model import GlobalConfig
from tableview.core.exceptions import ExportError
from tableview.core.schema import ColumnSpec, FieldDescriptor, FieldSchema, FilterKind
from tableview.core.table import TableController
from tableview.export.exporter import export_records
from tableview.services.export_service import ExportService
from tableview.services.storage import InMemoryStorage, LocalFileSystemStorage


@pytest.fixture()
def table() -> TableController:
    schema = FieldSchema(
        fields=(FieldDescriptor("status", "Status", FilterKind.SELECT, options=("Paid", "Pending")),),
        columns=(ColumnSpec("id", "ID"), ColumnSpec("status", "Status")),
    )
    records = [{"id": 1, "status": "Paid"}, {"id": 2, "status": "Pending"}, {"id": 3, "status": "Paid"}]
    return TableController(schema, records, name="orders")


def test_export_table_writes_filtered_csv_once(table):
    storage = InMemoryStorage()
    service = ExportService(storage)
    table.set_filter_value("status", "Paid")

    path = service.export_table(table, "csv", today=date(2024, 2, 3))

    assert path == "orders/orders_2024-02-03.csv"
    assert list(storage.files) == [path]
    assert storage.read_bytes(path) == b'"ID","Status"\n"1","Paid"\n"3","Paid"'
    assert service.list_exports("orders") == [path]


def test_save_without_folder(tmp_path: Path):
    storage = LocalFileSystemStorage(tmp_path)
    exported = export_records([], [ColumnSpec("a", "A")], "json", table_name="empty", today=date(2024, 1, 1))

    path = ExportService(storage).save(exported)

    assert path == "empty_2024-01-01.json"
    assert (tmp_path / path).read_bytes() == b"[]"


def test_local_storage_roundtrip_and_listing(tmp_path: Path):
    storage = LocalFileSystemStorage(tmp_path / "exports")
    storage.write_bytes("orders/a.csv", b"1")
    storage.write_bytes("orders/b.json", b"2")

    assert storage.exists("orders/a.csv")
    assert storage.read_bytes("orders/b.json") == b"2"
    assert storage.list_files("orders", ".csv") == ["orders/a.csv"]
    assert storage.list_files("missing") == []


def test_local_storage_rejects_path_traversal(tmp_path: Path):
    storage = LocalFileSystemStorage(tmp_path / "exports")
    with pytest.raises(ValueError):
        storage.write_bytes("../escape.csv", b"x")


def test_in_memory_storage_missing_file():
    with pytest.raises(FileNotFoundError):
        InMemoryStorage().read_bytes("nope")


def test_non_exportable_table_is_refused(table):
    table.exportable = False
    storage = InMemoryStorage()

    with pytest.raises(ExportError):
        ExportService(storage).export_table(table, "csv", today=date(2024, 2, 3))
    assert storage.files == {}


def test_service_from_config_writes_under_export_dir(tmp_path: Path, table):
    service = ExportService.from_config(GlobalConfig(export_dir=tmp_path / "exports"))

    path = service.export_table(table, "json", today=date(2024, 2, 3))

    assert (tmp_path / "exports" / path).is_file()


def test_service_from_config_needs_export_dir():
    with pytest.raises(ExportError):
        ExportService.from_config(GlobalConfig())
