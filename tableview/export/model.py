from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class ExportFormat(Enum):
    CSV = "csv"
    JSON = "json"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def content_type(self) -> str:
        if self is ExportFormat.CSV:
            return "text/csv;charset=utf-8"
        return "application/json"

    @classmethod
    def parse(cls, raw: Union[ExportFormat, str]) -> ExportFormat:
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).lower().lstrip("."))
        except ValueError:
            raise ValueError(f"Unsupported export format: {raw!r}") from None


@dataclass(frozen=True)
class ExportedTable:
    """
    Named byte buffer produced by an export, still in memory.

    The host decides how to deliver it (download, file write, upload).
    """
    filename: str
    content: bytes
    format: ExportFormat
    n_records: int

    @property
    def content_type(self) -> str:
        return self.format.content_type
