from __future__ import annotations


class WayfinderError(Exception):
    """Base class for errors raised by the navigation engine."""


class InvalidInput(WayfinderError, ValueError):
    """Malformed request data, rejected before the graph is touched."""


class NotFound(WayfinderError, LookupError):
    """An unknown node or feature, or no route between resolved endpoints."""


class NoPathError(NotFound):
    def __init__(self, source: int, target: int) -> None:
        super().__init__(f"No path between {source} and {target}")
        self.source = source
        self.target = target


class GraphUnavailable(WayfinderError, RuntimeError):
    """No snapshot has been loaded successfully yet."""


class GraphIntegrityError(WayfinderError, ValueError):
    """Raised while building a snapshot from inconsistent node/edge data."""

    def __init__(self, problems: list[str]) -> None:
        shown = "; ".join(problems[:5])
        more = f" (+{len(problems) - 5} more)" if len(problems) > 5 else ""
        super().__init__(f"Graph failed integrity checks: {shown}{more}")
        self.problems = problems


class SearchTimeout(WayfinderError, TimeoutError):
    """The shortest-path search ran past its deadline and was abandoned."""
