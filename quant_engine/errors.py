"""Engine exceptions.

Most failures never reach callers: estimator failures become fallback
signals and risk failures become fallback reports. These types mark the
few places where an error is raised or logged explicitly.
"""


class EngineError(Exception):
    """Base class for engine errors."""


class RiskComputationError(EngineError):
    """Portfolio data is insufficient or malformed for risk metrics."""


class PositionRejectedError(EngineError, ValueError):
    """A decision cannot be turned into a position (gate or limits)."""


class InvalidTransitionError(EngineError):
    """A position lifecycle transition that is not allowed."""

    def __init__(self, position_id: str, current: str, requested: str):
        self.position_id = position_id
        self.current = current
        self.requested = requested
        super().__init__(f"Position {position_id}: cannot move from {current} to {requested}")
