"""Transaction orchestration shared by all ledger services.

Every service wraps one SDK :class:`Client` handle. The handle carries the
"operator": the account paying fees for, and signing, every submission that
is not explicitly signed otherwise. Several services may share one handle, in
which case they also share its operator binding; :meth:`HederaClient.operating_as`
serializes rebinding on a shared handle, while :meth:`HederaClient.for_operator`
gives an actor a handle of its own.
"""
import weakref
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Optional

import structlog
from gevent.lock import RLock
from hiero_sdk_python import Client, Network, ResponseCode

from hedera_scenario_player.hedera.types import Account

log = structlog.get_logger(__name__)


@dataclass
class _HandleState:
    lock: RLock = field(default_factory=RLock)
    operator: Optional[Account] = None


_HANDLE_STATES: "weakref.WeakKeyDictionary[Client, _HandleState]" = weakref.WeakKeyDictionary()


def status_name(status) -> str:
    """Return the symbolic name of a receipt or precheck status code."""
    try:
        return ResponseCode(status).name
    except (TypeError, ValueError):
        return str(status)


class HederaClient:
    def __init__(self, client: Client, network: Optional[str] = None) -> None:
        self.client = client
        self.network = network
        self._state = _HANDLE_STATES.setdefault(client, _HandleState())

    @classmethod
    def for_network(cls, network: str, operator: Optional[Account] = None) -> "HederaClient":
        """Create an instance on a fresh client handle for `network`."""
        log.debug("Creating client handle", network=network)
        instance = cls(Client(Network(network)), network=network)
        if operator is not None:
            instance.set_operator(operator)
        return instance

    def for_operator(self, account: Account) -> "HederaClient":
        """Return a new instance of this class, bound to `account` on its own handle."""
        if self.network is None:
            raise ValueError("Cannot create a new client handle without knowing the network")
        return self.for_network(self.network, operator=account)

    @property
    def operator(self) -> Optional[Account]:
        return self._state.operator

    def set_operator(self, operator_account: Account) -> None:
        """Bind `operator_account` as signer and fee payer of the client handle."""
        log.info("Setting operator", operator=str(operator_account))
        self.client.set_operator(operator_account.id, operator_account.private_key)
        self._state.operator = operator_account

    @contextmanager
    def operating_as(self, account: Account) -> Iterator["HederaClient"]:
        """Bind `account` as operator for the duration of the block.

        Other greenlets using the same handle wait until the block is left, at
        which point the previous operator is restored. The SDK cannot unbind an
        operator, so one must be bound before entering the block.

        :raises ValueError: if no operator is bound yet.
        """
        with self._state.lock:
            previous = self._state.operator
            if previous is None:
                raise ValueError("Bind an operator before operating as another account")
            self.set_operator(account)
            try:
                yield self
            finally:
                self.set_operator(previous)

    def freeze(self, transaction):
        """Bind network, fee and transaction id parameters, ready for signing."""
        return transaction.freeze_with(self.client)

    @staticmethod
    def sign(transaction, *private_keys):
        for private_key in private_keys:
            transaction = transaction.sign(private_key)
        return transaction

    def execute_transaction(self, transaction):
        """Submit a frozen `transaction` and block until its receipt is available.

        The receipt is returned whatever its status; callers check it. Errors
        raised by the SDK before a receipt exists are logged and propagated.
        """
        transaction_type = type(transaction).__name__
        log.debug("Executing transaction", transaction=transaction_type)
        try:
            receipt = transaction.execute(self.client)
        except Exception:
            log.exception("Transaction was not receipted", transaction=transaction_type)
            raise
        log.info(
            "Transaction receipted",
            transaction=transaction_type,
            status=status_name(receipt.status),
        )
        return receipt

    def submit(self, transaction, *private_keys):
        """Freeze, sign with `private_keys` and execute `transaction`."""
        return self.execute_transaction(self.sign(self.freeze(transaction), *private_keys))

    def close(self) -> None:
        log.debug("Closing client handle", network=self.network)
        self.client.close()
