from __future__ import annotations


class GraphiteCheckError(RuntimeError):
    """Base class for failures that end a run with an UNKNOWN verdict."""


class ConfigurationError(GraphiteCheckError):
    """Raised before any network activity when the run cannot be configured."""


class FetchError(GraphiteCheckError):
    """Raised when the render API cannot be queried or its response decoded."""


class EmptyResultError(GraphiteCheckError):
    def __init__(self, target: str, check: str) -> None:
        super().__init__(f"no series returned for target {target} ({check} check)")
        self.target = target
        self.check = check
