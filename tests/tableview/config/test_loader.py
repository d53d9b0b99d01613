import json
from pathlib import Path

import pytest

from tableview.config.loader import load_global_config, load_tables
from tableview.core.exceptions import ConfigError
from tableview.core.schema import FilterKind
from tableview.validation.errors import ValidationError

REPO_CONFIG = Path(__file__).parents[3] / "config"


def _write(path: Path, payload) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload))


def _orders_table(**overrides):
    table = {
        "name": "orders",
        "columns": [{"key": "id", "label": "Order"}, {"key": "status", "label": "Status"}],
        "filters": [
            {"key": "status", "label": "Status", "type": "select", "options": ["Paid", "Pending"]},
            {"key": "amount", "label": "Amount", "type": "numberRange"},
        ],
    }
    table.update(overrides)
    return table


def test_load_tables_from_config_dir(tmp_path):
    # Arrange: build config dir:
    # root/
    #   global.json
    #   tables/
    #     orders.json
    config_root = tmp_path / "config"
    _write(config_root / "global.json", {"default_page_size": 10, "export_dir": "out"})
    _write(config_root / "tables" / "orders.json", _orders_table())

    global_cfg, tables = load_tables(config_root)

    assert global_cfg.default_page_size == 10
    assert global_cfg.export_dir == (config_root / "out").resolve()
    assert list(tables) == ["orders"]

    table = tables["orders"]
    assert table.name == "orders"
    assert table.state.page_size == 10
    assert table.schema.column_keys == ["id", "status"]
    assert table.schema.field("amount").kind is FilterKind.NUMBER_RANGE
    assert table.view.total_records == 0


def test_table_page_size_overrides_default(tmp_path):
    _write(tmp_path / "global.json", {})
    _write(tmp_path / "tables" / "orders.json", _orders_table(page_size=25))

    global_cfg, tables = load_tables(tmp_path)

    assert global_cfg.default_page_size == 15
    assert global_cfg.export_dir is None
    assert tables["orders"].state.page_size == 25


def test_missing_global_json(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_global_config(tmp_path)


def test_invalid_json_is_a_config_error(tmp_path):
    (tmp_path / "global.json").write_text("{not json")
    with pytest.raises(ConfigError):
        load_global_config(tmp_path)


def test_table_without_name(tmp_path):
    _write(tmp_path / "global.json", {})
    _write(tmp_path / "tables" / "orders.json", _orders_table(name=""))
    with pytest.raises(ConfigError):
        load_global_config(tmp_path)


def test_duplicate_table_names(tmp_path):
    _write(tmp_path / "global.json", {})
    _write(tmp_path / "tables" / "a.json", _orders_table())
    _write(tmp_path / "tables" / "b.json", _orders_table())
    with pytest.raises(ConfigError):
        load_global_config(tmp_path)


def test_bad_default_page_size(tmp_path):
    _write(tmp_path / "global.json", {"default_page_size": 0})
    with pytest.raises(ConfigError):
        load_global_config(tmp_path)


def test_filter_without_type_is_a_config_error(tmp_path):
    _write(tmp_path / "global.json", {})
    _write(tmp_path / "tables" / "orders.json", _orders_table(filters=[{"key": "status", "label": "Status"}]))
    with pytest.raises(ConfigError):
        load_tables(tmp_path)


def test_invalid_schema_is_reported(tmp_path):
    _write(tmp_path / "global.json", {})
    _write(
        tmp_path / "tables" / "orders.json",
        _orders_table(filters=[{"key": "status", "label": "Status", "type": "select"}]),
    )
    with pytest.raises(ValidationError) as exc_info:
        load_tables(tmp_path)
    assert exc_info.value.codes == ["FIELD_OPTIONS_MISSING"]


def test_shipped_example_config_loads():
    global_cfg, tables = load_tables(REPO_CONFIG)

    assert set(tables) == {"orders", "customers"}
    assert tables["customers"].state.page_size == 20
    assert tables["orders"].state.page_size == global_cfg.default_page_size
    assert tables["customers"].schema.field("profit_grade").kind is FilterKind.SLIDER


def test_exportable_flag_reaches_the_controller(tmp_path):
    _write(tmp_path / "global.json", {})
    _write(tmp_path / "tables" / "orders.json", _orders_table(exportable=False))
    _write(tmp_path / "tables" / "customers.json", _orders_table(name="customers"))

    _, tables = load_tables(tmp_path)

    assert tables["orders"].exportable is False
    assert tables["customers"].exportable is True


def test_quoted_slider_bounds_are_read_as_numbers(tmp_path):
    slider = {"key": "score", "label": "Score", "type": "slider", "min": "0", "max": "100", "step": "5"}
    _write(tmp_path / "global.json", {})
    _write(tmp_path / "tables" / "orders.json", _orders_table(filters=[slider]))

    _, tables = load_tables(tmp_path)

    field = tables["orders"].schema.field("score")
    assert (field.min, field.max, field.step) == (0.0, 100.0, 5.0)


def test_non_numeric_slider_bound_is_a_config_error(tmp_path):
    slider = {"key": "score", "label": "Score", "type": "slider", "min": "low", "max": 100, "step": 5}
    _write(tmp_path / "global.json", {})
    _write(tmp_path / "tables" / "orders.json", _orders_table(filters=[slider]))

    with pytest.raises(ConfigError):
        load_tables(tmp_path)
