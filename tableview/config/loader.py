from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Tuple

from tableview.config.model import GlobalConfig, TableConfig
from tableview.core.exceptions import ConfigError, SchemaError
from tableview.core.state import DEFAULT_PAGE_SIZE
from tableview.core.table import TableController

logger = logging.getLogger(__name__)


def _read_json(path: Path) -> Dict[str, Any]:
    try:
        with path.open(encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Expected a JSON object in {path}")
    return raw


def load_global_config(root: Path) -> GlobalConfig:
    """
    Load table definitions from a config directory.

    Expected structure:

        root/
            global.json
            tables/
                orders.json
                customers.json
                ...

    global.json keys:

    - default_page_size: page size for tables that don't set one, defaults to 15
    - export_dir: where exports are written. Relative paths resolve against 'root'.

    Each file in 'tables/' is parsed into a TableConfig and must have a 'name'.

    :param root: Directory containing 'global.json' and optionally 'tables/'.
    :return: A GlobalConfig instance.
    :raises FileNotFoundError: if global.json does not exist.
    :raises ConfigError: if a file is not valid JSON or a table has no name.
    """
    root = Path(root)
    logger.info(
        "Loading table config",
        extra={"config_root": str(root)},
    )

    global_path = root / "global.json"
    if not global_path.is_file():
        raise FileNotFoundError(f"File not found at {global_path}")

    raw_global = _read_json(global_path)
    default_page_size = int(raw_global.get("default_page_size", DEFAULT_PAGE_SIZE))
    if default_page_size < 1:
        raise ConfigError(f"default_page_size must be >= 1 in {global_path}")

    tables_dir = root / "tables"
    tables: List[TableConfig] = []
    names: set[str] = set()

    if tables_dir.is_dir():
        for idx, config_file in enumerate(sorted(tables_dir.glob("*.json"))):
            raw = _read_json(config_file)
            if not raw.get("name"):
                raise ConfigError(f"Table definition {config_file} has no 'name'")
            if raw["name"] in names:
                raise ConfigError(f"Table '{raw['name']}' is defined more than once")
            names.add(raw["name"])
            tables.append(
                TableConfig.from_raw(raw, source_path=config_file, index=idx, default_page_size=default_page_size)
            )

    # Absolute export_dir is used as-is, relative is resolved against the config root
    export_dir_raw = raw_global.get("export_dir")
    if export_dir_raw is None:
        export_dir = None
    else:
        export_dir_path = Path(export_dir_raw)
        if export_dir_path.is_absolute():
            export_dir = export_dir_path
        else:
            export_dir = (root / export_dir_path).resolve()

    return GlobalConfig(
        default_page_size=default_page_size,
        export_dir=export_dir,
        tables=tables,
    )


def load_tables(root: Path) -> Tuple[GlobalConfig, Dict[str, TableController]]:
    """
    Load the global configuration and build one TableController per table.

    Controllers start with no records; the host fills them with
    'replace_records' once data has been fetched.

    :param root: Path to config directory.
    :return: A tuple of (GlobalConfig, {table name: TableController}).
    :raises ValidationError: if a table schema is invalid.
    """
    global_config = load_global_config(root)

    controllers: Dict[str, TableController] = {}
    for table_cfg in global_config.tables:
        try:
            schema = table_cfg.schema
        except SchemaError as e:
            raise ConfigError(f"Invalid table definition {table_cfg.source_path}: {e}") from e

        controllers[table_cfg.name] = TableController(
            schema,
            name=table_cfg.name,
            page_size=table_cfg.page_size,
            exportable=table_cfg.exportable,
        )

    logger.info("Tables loaded from config root",
                extra={"config_root": str(root),
                       "n_tables": len(controllers),
                       "table_names": list(controllers)})

    return global_config, controllers
