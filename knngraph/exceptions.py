"""Exception types raised by knngraph."""


class KNNGraphError(Exception):
    """Base class for all knngraph errors."""


class InvalidParameterError(KNNGraphError, ValueError):
    """Bad build parameter (k, rho, delta, max_iterations) or an empty dataset."""


class DistanceFunctionError(KNNGraphError, RuntimeError):
    """The distance function raised while building; the build was aborted."""

    def __init__(self, a, b, cause: BaseException) -> None:
        super().__init__(f"Distance function failed for ({a!r}, {b!r}): {cause}")
        self.a = a
        self.b = b


class PointNotFoundError(KNNGraphError, KeyError):
    """Queried a point that is not part of the indexed dataset."""

    def __init__(self, point) -> None:
        super().__init__(point)
        self.point = point

    def __str__(self) -> str:
        return f"Point {self.point!r} is not in the index"


class BuildCancelledError(KNNGraphError):
    """The build was cancelled between refinement iterations."""
