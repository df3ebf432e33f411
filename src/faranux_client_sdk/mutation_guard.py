from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

from .stock_validation import ClientValidationError, ValidationIssue


class MutationInFlightError(ClientValidationError):
    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__([ValidationIssue(None, "operation", f"{operation} is already in progress")])


@dataclass
class MutationGuard:
    """Tracks mutating calls awaiting a response so their confirm control stays disabled."""

    in_flight: set[str] = field(default_factory=set)

    def begin(self, operation: str) -> bool:
        if operation in self.in_flight:
            return False
        self.in_flight.add(operation)
        return True

    def end(self, operation: str) -> None:
        self.in_flight.discard(operation)

    def is_busy(self, operation: str) -> bool:
        return operation in self.in_flight

    @contextmanager
    def hold(self, operation: str) -> Iterator[None]:
        if not self.begin(operation):
            raise MutationInFlightError(operation)
        try:
            yield
        finally:
            self.end(operation)
