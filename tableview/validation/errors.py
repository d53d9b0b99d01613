from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

ERROR = "error"
WARNING = "warning"


@dataclass(frozen=True)
class ValidationIssue:
    """
    One problem found in a table schema.

    ``field`` is the filter/column key the issue is about, when there is one.
    Warnings are logged, errors make the schema unusable.
    """
    code: str
    message: str
    field: Optional[str] = None
    severity: str = ERROR

    @property
    def is_error(self) -> bool:
        return self.severity == ERROR


class ValidationError(Exception):
    def __init__(self, issues: List[ValidationIssue]):
        self.issues = issues
        super().__init__("\n".join(f"{i.code}: {i.message}" for i in issues))

    @property
    def codes(self) -> List[str]:
        return [i.code for i in self.issues]
