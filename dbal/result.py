"""Result values returned by every Database operation."""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class Result:
    """Outcome of one facade call.

    Truthy iff the call succeeded, so ``if not db.query(...)`` still works
    as a plain failure check while ``error`` and ``sqlstate`` carry the
    driver's detail.
    """
    ok: bool
    value: Any = None
    error: Optional[str] = None
    query: Optional[str] = None
    sqlstate: Optional[str] = None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value=None, query=None) -> "Result":
        return cls(ok=True, value=value, query=query)

    @classmethod
    def failure(cls, error: str, query=None, sqlstate=None) -> "Result":
        return cls(ok=False, error=error, query=query, sqlstate=sqlstate)

    def unwrap_or(self, default):
        """Return the value on success, `default` otherwise."""
        return self.value if self.ok else default
