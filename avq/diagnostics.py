from __future__ import annotations
from dataclasses import dataclass
import logging
from typing import Iterator, List, Optional

logger = logging.getLogger(__name__)

OUTPUTSIZE_IGNORED = "request.outputsize_ignored"
MALFORMED_RECORD = "parse.malformed_record"
UNPARSABLE_DATE = "parse.unparsable_date"


@dataclass(frozen=True)
class Diagnostic:
    kind: str
    message: str
    row: Optional[int] = None


class Diagnostics:
    """Collects non-fatal notices raised while building requests or parsing responses.

    Every notice is also logged at WARNING, so callers that do not pass a
    collector still see them in their logs.
    """

    def __init__(self) -> None:
        self.items: List[Diagnostic] = []

    def add(self, kind: str, message: str, row: Optional[int] = None) -> Diagnostic:
        d = Diagnostic(kind, message, row)
        self.items.append(d)
        logger.warning("%s: %s", kind, message)
        return d

    def of_kind(self, kind: str) -> List[Diagnostic]:
        return [d for d in self.items if d.kind == kind]

    def rows(self, kind: str) -> List[int]:
        return [d.row for d in self.items if d.kind == kind and d.row is not None]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __bool__(self) -> bool:
        return bool(self.items)
