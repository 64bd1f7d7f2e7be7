"""
Payload access with optional read tracing.

The explain facility re-runs the estimator while recording every payload path
that was read. The numeric pipeline only ever sees a `PayloadReader`, so the
tracing stays out of the physics code.
"""

from typing import Any, List, Optional, Set

from .core.numeric import to_finite


class PayloadReader:
    """Resolve dotted paths ('forecast.hourly.time.3') against a nested payload."""

    def __init__(self, payload: Any, visited: Optional[Set[str]] = None):
        """
        Initialize reader.

        Args:
            payload: Nested dict/list structure
            visited: When given, every requested path is added to this set
        """
        self.payload = payload if payload is not None else {}
        self.visited = visited

    def get(self, path: str, default: Any = None) -> Any:
        """
        Resolve a dotted path.

        Integer segments index into lists (negative indices allowed).

        Args:
            path: Dotted path
            default: Returned when any segment is missing

        Returns:
            The value at the path, or default
        """
        if self.visited is not None:
            self.visited.add(path)

        value = self.payload
        for segment in path.split("."):
            if isinstance(value, dict):
                if segment not in value:
                    return default
                value = value[segment]
            elif isinstance(value, (list, tuple)):
                try:
                    index = int(segment)
                except ValueError:
                    return default
                if index >= len(value) or index < -len(value):
                    return default
                value = value[index]
            else:
                return default
        return default if value is None else value

    def number(self, path: str, default: Optional[float] = None) -> Optional[float]:
        """Resolve a path to a finite float, or default."""
        number = to_finite(self.get(path))
        return default if number is None else number

    def series(self, path: str) -> List[Optional[float]]:
        """
        Resolve a path to a numeric series, index-aligned.

        Non-finite entries become None so positions are preserved.
        """
        values = self.get(path)
        if not isinstance(values, (list, tuple)):
            return []
        return [to_finite(v) for v in values]

    def finite_series(self, path: str) -> List[float]:
        """Resolve a path to the finite numbers of a series."""
        return [v for v in self.series(path) if v is not None]

    def strings(self, path: str) -> List[Optional[str]]:
        """Resolve a path to a list of strings, index-aligned."""
        values = self.get(path)
        if not isinstance(values, (list, tuple)):
            return []
        return [v if isinstance(v, str) else None for v in values]

    def fields_read(self) -> List[str]:
        """Sorted list of every path read so far."""
        return sorted(self.visited) if self.visited is not None else []
