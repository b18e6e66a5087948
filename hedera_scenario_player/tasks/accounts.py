import dataclasses
from decimal import Decimal
from typing import Any

import structlog

from hedera_scenario_player import runner as scenario_runner
from hedera_scenario_player.constants import STORAGE_KEY_ACCOUNTS
from hedera_scenario_player.exceptions import ScenarioAssertionError, ScenarioError
from hedera_scenario_player.tasks.base import Task

log = structlog.get_logger(__name__)


def to_hbar(value) -> Decimal:
    """Convert a number read from YAML to an exact HBAR amount."""
    return Decimal(str(value))


class SelectOperatorTask(Task):
    """Bind the first table account holding more than ``balance_min`` HBAR as operator.

    Example::

        - select_operator: {balance_min: 10}
    """

    _name = "select_operator"
    REQUIRED_KEYS = ("balance_min",)

    def _run(self, *args, **kwargs):  # pylint: disable=unused-argument
        minimum = to_hbar(self._config["balance_min"])
        account = self._runner.accounts.find_funded_account(self._runner.definition.accounts, minimum)
        self._runner.client.set_operator(account)
        return account


class SetOperatorTask(Task):
    _name = "set_operator"
    REQUIRED_KEYS = ("account",)

    def _run(self, *args, **kwargs):  # pylint: disable=unused-argument
        account = self._runner.resolve_account(self._config["account"])
        self._runner.client.set_operator(account)
        return account


class CreateAccountTask(Task):
    """Create an account funded by the operator and keep it under ``name``.

    Example::

        - create_account: {name: carol, initial_balance: 2.5}
    """

    _name = "create_account"
    REQUIRED_KEYS = ("name",)

    def __init__(
        self, runner: scenario_runner.ScenarioRunner, config: Any, parent: "Task" = None
    ) -> None:
        super().__init__(runner, config, parent)
        self.name = str(config["name"])
        if runner.definition.accounts.get(self.name) is not None:
            raise ScenarioError(f"Account name {self.name!r} is taken by the account table")

    def _run(self, *args, **kwargs):  # pylint: disable=unused-argument
        initial_balance = to_hbar(self._config.get("initial_balance", 0))
        account = self._runner.accounts.create_account(initial_balance)
        account = dataclasses.replace(account, name=self.name)
        self._runner.store_entity(STORAGE_KEY_ACCOUNTS, self.name, account)
        return account


class AssertHbarBalanceTask(Task):
    """Assert on the HBAR balance of an account.

    Give an exact ``balance``, or a ``min`` and/or ``max`` bound (both inclusive).

    Example::

        - assert_hbar_balance: {account: carol, balance: 2.5}
        - assert_hbar_balance: {account: 0, min: 10}
    """

    _name = "assert_hbar_balance"
    REQUIRED_KEYS = ("account",)

    def __init__(
        self, runner: scenario_runner.ScenarioRunner, config: Any, parent: "Task" = None
    ) -> None:
        super().__init__(runner, config, parent)
        if not any(key in config for key in ("balance", "min", "max")):
            raise ScenarioError("assert_hbar_balance requires one of 'balance', 'min' or 'max'")

    def _run(self, *args, **kwargs):  # pylint: disable=unused-argument
        account = self._runner.resolve_account(self._config["account"])
        balance = self._runner.accounts.get_hbar_balance(account.id)

        if "balance" in self._config and balance != to_hbar(self._config["balance"]):
            raise ScenarioAssertionError(
                f"Balance of {account} is {balance} hbar, expected {self._config['balance']}"
            )
        if "min" in self._config and balance < to_hbar(self._config["min"]):
            raise ScenarioAssertionError(
                f"Balance of {account} is {balance} hbar, expected at least {self._config['min']}"
            )
        if "max" in self._config and balance > to_hbar(self._config["max"]):
            raise ScenarioAssertionError(
                f"Balance of {account} is {balance} hbar, expected at most {self._config['max']}"
            )
        return balance
