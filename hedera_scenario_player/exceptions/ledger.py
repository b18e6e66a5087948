class LedgerError(RuntimeError):
    """There was a problem with an interaction with the ledger network.

    Errors raised by the SDK itself (precheck failures, transport errors and
    timeouts) are never wrapped in this class; they reach the caller as they are.
    """


class EntityCreationError(LedgerError):
    """A creation transaction was receipted, but the receipt names no created entity."""


class SubscriptionError(LedgerError):
    """The message stream of a topic subscription errored.

    The error reported by the stream is available as :attr:`__cause__`.
    """
