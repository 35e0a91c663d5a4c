"""Exceptions raised by the aggregation layer."""


class PortfolioAggregatorError(RuntimeError):
    """Base class for errors surfaced to callers."""


class PositionReadError(PortfolioAggregatorError):
    """A position reader could not produce any live result."""


class AggregationError(PortfolioAggregatorError):
    """
    The aggregation run could not complete.

    Raised instead of returning a partially merged snapshot. Callers are
    expected to substitute the demonstration snapshot.

    Parameters
    ----------
    address : str
        Wallet address being aggregated
    message : str
        Description of the failure

    """

    def __init__(self, address: str, message: str) -> None:
        self.address = address
        super().__init__(f"Aggregation failed for {address}: {message}")
