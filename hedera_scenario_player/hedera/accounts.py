from decimal import Decimal
from typing import Iterable, Union

import structlog
from hiero_sdk_python import (
    AccountCreateTransaction,
    AccountId,
    CryptoGetAccountBalanceQuery,
    Hbar,
    PrivateKey,
)

from hedera_scenario_player.constants import TINYBARS_PER_HBAR
from hedera_scenario_player.exceptions.ledger import EntityCreationError
from hedera_scenario_player.exceptions.scenario import ScenarioError
from hedera_scenario_player.hedera.client import HederaClient
from hedera_scenario_player.hedera.types import Account

log = structlog.get_logger(__name__)


class AccountService(HederaClient):
    def get_hbar_balance(self, account_id: AccountId) -> Decimal:
        """Return the current HBAR balance of `account_id`.

        The query is unsigned and free of side effects; every call reads the
        ledger state anew.
        """
        balance = CryptoGetAccountBalanceQuery().set_account_id(account_id).execute(self.client)
        return Decimal(balance.hbars.to_tinybars()) / TINYBARS_PER_HBAR

    def create_account(self, initial_balance: Union[int, Decimal]) -> Account:
        """Create an account holding `initial_balance` HBAR, funded by the operator.

        The key pair of the new account is generated locally.

        :raises EntityCreationError:
            if the receipt does not carry the id of a new account.
        """
        private_key = PrivateKey.generate_ed25519()
        transaction = (
            AccountCreateTransaction()
            .set_key(private_key.public_key())
            .set_initial_balance(Hbar(initial_balance))
        )
        receipt = self.submit(transaction)

        if not receipt.account_id:
            raise EntityCreationError("Account creation failed!")

        log.info("Account created", account_id=str(receipt.account_id))
        return Account(id=receipt.account_id, private_key=private_key)

    def find_funded_account(self, accounts: Iterable[Account], minimum_balance) -> Account:
        """Return the first of `accounts` holding more than `minimum_balance` HBAR.

        :raises ScenarioError: if no account is funded well enough.
        """
        for account in accounts:
            balance = self.get_hbar_balance(account.id)
            log.debug("Checked account balance", account=str(account), balance=str(balance))
            if balance > minimum_balance:
                return account
        raise ScenarioError(f"No configured account holds more than {minimum_balance} hbar")
