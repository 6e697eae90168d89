"""
Statement handle contracts.

The binder only needs a 1-based parameter buffer and `add_batch`. Executing
the batch belongs to whoever owns the statement (see
`sink_binder.infrastructure.statement` for the psycopg-backed one).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable


@runtime_checkable
class PreparedStatement(Protocol):
    """Minimal surface the binder and encoders write to."""

    def set_parameter(self, index: int, value: Any) -> None:
        """Store `value` in the 1-based placeholder slot `index`."""
        ...

    def add_batch(self) -> None:
        """Append the current parameter buffer as one pending row."""
        ...


@runtime_checkable
class ExecutableStatement(PreparedStatement, Protocol):
    def execute_batch(self) -> int:
        """Send every pending row and return how many were sent."""
        ...


class BufferedStatement:
    """
    In-memory statement: a parameter buffer plus a queue of pending rows.

    Parameters
    ----------
    parameter_count : int | None
        Number of placeholders in the statement, when known. Indices beyond it
        are rejected and `add_batch` requires every slot to be filled.
    """

    def __init__(self, parameter_count: Optional[int] = None) -> None:
        if parameter_count is not None and parameter_count < 0:
            raise ValueError("parameter_count must be non-negative")
        self.parameter_count = parameter_count
        self._params: Dict[int, Any] = {}
        self._batch: List[Tuple[Any, ...]] = []

    def set_parameter(self, index: int, value: Any) -> None:
        if index < 1:
            raise IndexError(f"Placeholder indices start at 1, got {index}")
        if self.parameter_count is not None and index > self.parameter_count:
            raise IndexError(
                f"Placeholder {index} is out of range for a statement with "
                f"{self.parameter_count} parameters"
            )
        self._params[index] = value

    def add_batch(self) -> None:
        expected = self.parameter_count if self.parameter_count is not None else len(self._params)
        missing = [i for i in range(1, expected + 1) if i not in self._params]
        if missing or len(self._params) != expected:
            raise ValueError(f"Unbound placeholders {missing} in row of {expected} parameters")
        self._batch.append(tuple(self._params[i] for i in range(1, expected + 1)))
        self._params.clear()

    @property
    def batch(self) -> List[Tuple[Any, ...]]:
        return list(self._batch)

    def clear_batch(self) -> None:
        self._batch.clear()
        self._params.clear()

    def __len__(self) -> int:
        return len(self._batch)


__all__ = ["PreparedStatement", "ExecutableStatement", "BufferedStatement"]
