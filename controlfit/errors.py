"""Error types raised by the fitness calculators.

Estimators fail fast with one of these; the host application maps each kind
to its own user-facing message.
"""


class FitnessMetricsError(Exception):
    """Base exception for calculator errors."""

    pass


class MissingMeasurementError(FitnessMetricsError):
    """Raised when a method needs a measurement the record does not have.

    Attributes:
        method: Method that was requested
        missing: Names of the absent fields
    """

    def __init__(self, method: str, missing: list[str]) -> None:
        self.method = method
        self.missing = list(missing)
        super().__init__(f"{method} requires: {', '.join(self.missing)}")


class InvalidInputError(FitnessMetricsError, ValueError):
    """Raised for non-positive or nonsensical numeric input."""

    pass


class NoValidMethodError(FitnessMetricsError):
    """Raised when every body-fat method was missing data or implausible.

    Attributes:
        reasons: method name -> why it was rejected
    """

    def __init__(self, reasons: dict[str, str]) -> None:
        self.reasons = dict(reasons)
        detail = "; ".join(f"{m}: {r}" for m, r in self.reasons.items())
        super().__init__(f"No body-fat method produced a valid result ({detail})")


class NoValidEstimateError(FitnessMetricsError):
    """Raised when every 1RM candidate formula was rejected.

    Attributes:
        reasons: formula name -> why it was rejected
    """

    def __init__(self, reasons: dict[str, str]) -> None:
        self.reasons = dict(reasons)
        detail = "; ".join(f"{m}: {r}" for m, r in self.reasons.items())
        super().__init__(f"No 1RM formula produced a valid estimate ({detail})")


class UnsupportedMethodError(FitnessMetricsError, KeyError):
    """Raised for an unknown formula/method name.

    Attributes:
        method: Requested name
        available: Names that would have been accepted
    """

    def __init__(self, method: str, available: list[str]) -> None:
        self.method = method
        self.available = sorted(available)
        super().__init__(f"Method '{method}' not available (choose from: {', '.join(self.available)})")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]
