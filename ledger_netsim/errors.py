"""Exception hierarchy for the simulation driver."""


class SimulationError(Exception):
    """Base class for every recoverable failure raised inside a tick."""


class NetworkError(SimulationError):
    """A node could not be created or connected."""


class DaemonError(SimulationError):
    """A daemon call on a node failed."""


class OrderBookError(SimulationError):
    """An order-book listing could not be parsed."""


class EmptyOrderBookError(OrderBookError):
    """The order book has no records yet."""


class NoMatchError(SimulationError):
    """No ask/bid pair satisfies the matching rule."""


class NoWalletBidsError(NoMatchError):
    """The wallet owns no unused bids."""


class ActionSkipped(SimulationError):
    """A precondition of a random action was not met."""
