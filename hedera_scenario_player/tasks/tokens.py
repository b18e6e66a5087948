from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

import structlog
from hiero_sdk_python import TransactionId

from hedera_scenario_player import runner as scenario_runner
from hedera_scenario_player.constants import (
    DEFAULT_EXPECTED_STATUS,
    STORAGE_KEY_TOKENS,
    STORAGE_KEY_TRANSFERS,
)
from hedera_scenario_player.exceptions import ScenarioAssertionError, ScenarioError
from hedera_scenario_player.exceptions.ledger import EntityCreationError
from hedera_scenario_player.hedera import Account, TokenTransfer
from hedera_scenario_player.tasks.base import Task

log = structlog.get_logger(__name__)


@dataclass
class TransferRecord:
    """HBAR balances of everyone involved in a token transfer, before and after it."""

    payer: Account
    accounts: List[Account]
    balances_before: Dict[str, Decimal] = field(default_factory=dict)
    balances_after: Dict[str, Decimal] = field(default_factory=dict)
    receipt: Any = None

    def involves(self, account: Account) -> bool:
        return str(account.id) in self.balances_before

    def balance_change(self, account: Account) -> Decimal:
        key = str(account.id)
        return self.balances_after[key] - self.balances_before[key]


class CreateTokenTask(Task):
    """Create a fungible token and keep its id under ``store_as``.

    The treasury holds the initial supply and controls the token's keys.
    With ``fixed_supply`` the supply can never grow beyond ``initial_supply``.

    Example::

        - create_token:
            name: Scenario Token
            symbol: SCT
            decimals: 2
            initial_supply: 1000
            treasury: operator
            fixed_supply: true
            store_as: fixed
    """

    _name = "create_token"
    REQUIRED_KEYS = ("name", "symbol", "initial_supply")

    def __init__(
        self, runner: scenario_runner.ScenarioRunner, config: Any, parent: "Task" = None
    ) -> None:
        super().__init__(runner, config, parent)
        self.store_as = str(config.get("store_as", config["symbol"]))

    def _run(self, *args, **kwargs):  # pylint: disable=unused-argument
        treasury = self._runner.resolve_account(self._config.get("treasury", "operator"))
        receipt = self.submit_expecting_status(
            lambda: self._runner.tokens.create_token(
                name=self._config["name"],
                symbol=self._config["symbol"],
                decimals=int(self._config.get("decimals", 0)),
                initial_supply=int(self._config["initial_supply"]),
                treasury_account=treasury,
                fixed_supply=bool(self._config.get("fixed_supply", False)),
            )
        )
        if receipt is None or not receipt.token_id:
            # Rejected as expected, nothing to keep.
            if self.expected_status != DEFAULT_EXPECTED_STATUS:
                return None
            raise EntityCreationError("Token creation failed!")

        self._runner.store_entity(STORAGE_KEY_TOKENS, self.store_as, receipt.token_id)
        log.info("Token created", token=self.store_as, token_id=str(receipt.token_id))
        return receipt.token_id


class MintTokenTask(Task):
    """Mint ``amount`` base units of a token into its treasury.

    The treasury defaults to the current operator. Minting beyond a fixed
    supply is expected to fail::

        - mint_token: {token: fixed, amount: 1, expected_status: TOKEN_MAX_SUPPLY_REACHED}
    """

    _name = "mint_token"
    REQUIRED_KEYS = ("token", "amount")

    def _run(self, *args, **kwargs):  # pylint: disable=unused-argument
        token_id = self._runner.resolve_token(self._config["token"])
        treasury = self._runner.resolve_account(self._config.get("treasury", "operator"))
        return self.submit_expecting_status(
            lambda: self._runner.tokens.mint_token(token_id, int(self._config["amount"]), treasury)
        )


class AssociateTokenTask(Task):
    _name = "associate_token"
    REQUIRED_KEYS = ("account", "token")

    def _run(self, *args, **kwargs):  # pylint: disable=unused-argument
        account = self._runner.resolve_account(self._config["account"])
        token_id = self._runner.resolve_token(self._config["token"])
        return self.submit_expecting_status(
            lambda: self._runner.tokens.associate_token(account, token_id)
        )


class TransferTokenTask(Task):
    """Transfer ``amount`` of a token between two accounts; the operator pays the fee.

    Example::

        - transfer_token: {from: operator, to: bob, token: SCT, amount: 10}
    """

    _name = "transfer_token"
    REQUIRED_KEYS = ("from", "to", "token", "amount")

    def _run(self, *args, **kwargs):  # pylint: disable=unused-argument
        sender = self._runner.resolve_account(self._config["from"])
        receiver = self._runner.resolve_account(self._config["to"])
        token_id = self._runner.resolve_token(self._config["token"])
        return self.submit_expecting_status(
            lambda: self._runner.tokens.transfer_token(
                sender, receiver, token_id, int(self._config["amount"])
            )
        )


class TransferTokensTask(Task):
    """Submit one atomic transfer of a token between any number of accounts.

    The amounts must sum up to zero. Every debited account signs, as well as
    the accounts listed in ``signers``. With ``payer`` set, the transaction
    fee is billed to that account (which then signs too) instead of the
    operator.

    With ``store_as`` the HBAR balances of all involved accounts are recorded
    before and after the transfer, for :class:`AssertFeePayerTask`.

    Example::

        - transfer_tokens:
            token: SCT
            payer: alice
            transfers:
              - {account: alice, amount: -10}
              - {account: bob, amount: 10}
            store_as: alice_pays
    """

    _name = "transfer_tokens"
    REQUIRED_KEYS = ("token", "transfers")

    def __init__(
        self, runner: scenario_runner.ScenarioRunner, config: Any, parent: "Task" = None
    ) -> None:
        super().__init__(runner, config, parent)
        transfers = config["transfers"]
        if not transfers or not all(
            isinstance(entry, dict) and {"account", "amount"} <= entry.keys() for entry in transfers
        ):
            raise ScenarioError("Each of 'transfers' must name an 'account' and an 'amount'")

    def _run(self, *args, **kwargs):  # pylint: disable=unused-argument
        runner = self._runner
        token_id = runner.resolve_token(self._config["token"])
        transfers = [
            TokenTransfer(runner.resolve_account(entry["account"]), int(entry["amount"]))
            for entry in self._config["transfers"]
        ]

        payer: Optional[Account] = None
        payer_transaction_id = None
        if "payer" in self._config:
            payer = runner.resolve_account(self._config["payer"])
            payer_transaction_id = TransactionId.generate(payer.id)

        signers: List[Account] = [transfer.account for transfer in transfers if transfer.amount < 0]
        signers.extend(runner.resolve_account(ref) for ref in self._config.get("signers", []))
        if payer is not None:
            signers.append(payer)
        signing_keys = list({str(account.id): account.private_key for account in signers}.values())

        record = None
        if "store_as" in self._config:
            fee_payer = payer or runner.client.operator
            involved = {str(transfer.account.id): transfer.account for transfer in transfers}
            involved.setdefault(str(fee_payer.id), fee_payer)
            record = TransferRecord(payer=fee_payer, accounts=list(involved.values()))
            record.balances_before = self._snapshot(record.accounts)

        def submit():
            transaction = runner.tokens.create_token_transfer_transaction(
                transfers, token_id, payer_transaction_id=payer_transaction_id
            )
            return runner.tokens.execute_transaction(
                runner.tokens.sign(transaction, *signing_keys)
            )

        receipt = self.submit_expecting_status(submit)

        if record is not None:
            record.balances_after = self._snapshot(record.accounts)
            record.receipt = receipt
            runner.store_entity(STORAGE_KEY_TRANSFERS, str(self._config["store_as"]), record)
        return receipt

    def _snapshot(self, accounts: List[Account]) -> Dict[str, Decimal]:
        return {
            str(account.id): self._runner.accounts.get_hbar_balance(account.id)
            for account in accounts
        }


class AssertTokenBalanceTask(Task):
    _name = "assert_token_balance"
    REQUIRED_KEYS = ("account", "token", "balance")

    def _run(self, *args, **kwargs):  # pylint: disable=unused-argument
        account = self._runner.resolve_account(self._config["account"])
        token_id = self._runner.resolve_token(self._config["token"])
        balance = self._runner.tokens.get_token_balance(account.id, token_id)
        expected = int(self._config["balance"])
        if balance != expected:
            raise ScenarioAssertionError(
                f"Token balance of {account} is {balance}, expected {expected}"
            )
        return balance


class AssertTokenInfoTask(Task):
    """Assert on the ledger's metadata of a token.

    Only the given properties are compared; ``treasury`` is an account reference.

    Example::

        - assert_token_info: {token: fixed, total_supply: 1000, max_supply: 1000}
    """

    _name = "assert_token_info"
    REQUIRED_KEYS = ("token",)
    PROPERTIES = ("name", "symbol", "decimals", "total_supply", "max_supply")

    def _run(self, *args, **kwargs):  # pylint: disable=unused-argument
        token_id = self._runner.resolve_token(self._config["token"])
        info = self._runner.tokens.get_token_info(token_id)

        mismatches = []
        for prop in self.PROPERTIES:
            if prop not in self._config:
                continue
            actual = getattr(info, prop)
            if str(actual) != str(self._config[prop]):
                mismatches.append(f"{prop} is {actual!r}, expected {self._config[prop]!r}")

        if "treasury" in self._config:
            treasury = self._runner.resolve_account(self._config["treasury"])
            actual_treasury = getattr(info, "treasury", None)
            if str(actual_treasury) != str(treasury.id):
                mismatches.append(f"treasury is {actual_treasury}, expected {treasury.id}")

        if mismatches:
            raise ScenarioAssertionError(f"Token {token_id}: " + "; ".join(mismatches))
        return info


class AssertFeePayerTask(Task):
    """Assert that only the payer of a recorded transfer lost HBAR through it.

    Token transfers move no HBAR, so the fee is the only HBAR balance change
    the transfer may cause. The payer defaults to the one the transfer was
    submitted with.

    Example::

        - assert_fee_payer: {transfer: alice_pays}
    """

    _name = "assert_fee_payer"
    REQUIRED_KEYS = ("transfer",)

    def _run(self, *args, **kwargs):  # pylint: disable=unused-argument
        try:
            record: TransferRecord = self._runner.task_storage[STORAGE_KEY_TRANSFERS][
                self._config["transfer"]
            ]
        except KeyError:
            raise ScenarioError(
                f"No transfer recorded as {self._config['transfer']!r}, set 'store_as' on it"
            ) from None

        payer = record.payer
        if "payer" in self._config:
            payer = self._runner.resolve_account(self._config["payer"])
        if not record.involves(payer):
            raise ScenarioAssertionError(
                f"{payer} took no part in transfer {self._config['transfer']!r}"
            )

        if record.balance_change(payer) >= 0:
            raise ScenarioAssertionError(f"{payer} did not pay a fee for the transfer")

        for account in record.accounts:
            if str(account.id) == str(payer.id):
                continue
            change = record.balance_change(account)
            if change != 0:
                raise ScenarioAssertionError(
                    f"HBAR balance of {account} changed by {change} although it is not the payer"
                )
        return record
