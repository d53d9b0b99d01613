from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from tableview.core.schema import FieldSchema
from tableview.core.state import DEFAULT_PAGE_SIZE


@dataclass
class TableConfig:
    """
    Parsed config entry for a single table.
    """
    raw: Dict[str, Any]
    source_path: Path
    index: int
    default_page_size: int = DEFAULT_PAGE_SIZE

    @property
    def name(self) -> str:
        return str(self.raw.get("name") or "data")

    @property
    def page_size(self) -> int:
        return int(self.raw.get("page_size", self.default_page_size))

    @property
    def exportable(self) -> bool:
        return bool(self.raw.get("exportable", True))

    @property
    def schema(self) -> FieldSchema:
        return FieldSchema.from_dict(self.raw)

    @classmethod
    def from_raw(
            cls,
            raw: Dict[str, Any],
            source_path: Path,
            index: int,
            default_page_size: int = DEFAULT_PAGE_SIZE,
    ) -> TableConfig:
        return cls(raw=raw, source_path=source_path, index=index, default_page_size=default_page_size)


@dataclass
class GlobalConfig:
    default_page_size: int = DEFAULT_PAGE_SIZE
    export_dir: Optional[Path] = None
    tables: List[TableConfig] = field(default_factory=list)
