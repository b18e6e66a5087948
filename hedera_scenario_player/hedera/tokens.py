from typing import Optional, Sequence

import structlog
from hiero_sdk_python import (
    AccountId,
    CryptoGetAccountBalanceQuery,
    TokenAssociateTransaction,
    TokenCreateTransaction,
    TokenId,
    TokenInfoQuery,
    TokenMintTransaction,
    TransactionId,
    TransferTransaction,
)
from hiero_sdk_python.tokens.supply_type import SupplyType
from hiero_sdk_python.tokens.token_type import TokenType

from hedera_scenario_player.hedera.client import HederaClient
from hedera_scenario_player.hedera.types import Account, TokenTransfer

log = structlog.get_logger(__name__)


class TokenService(HederaClient):
    def create_token(
        self,
        name: str,
        symbol: str,
        decimals: int,
        initial_supply: int,
        treasury_account: Account,
        fixed_supply: bool = False,
    ):
        """Create a fungible token held and administered by `treasury_account`.

        The treasury's key becomes admin, supply and freeze key of the token.

        With `fixed_supply` the supply is finite and capped at `initial_supply`,
        so any later mint is rejected by the ledger. Otherwise the supply is
        unbounded and minting stays possible.
        """
        treasury_key = treasury_account.public_key
        transaction = (
            TokenCreateTransaction()
            .set_token_name(name)
            .set_token_symbol(symbol)
            .set_decimals(decimals)
            .set_initial_supply(initial_supply)
            .set_treasury_account_id(treasury_account.id)
            .set_token_type(TokenType.FUNGIBLE_COMMON)
            .set_admin_key(treasury_key)
            .set_supply_key(treasury_key)
            .set_freeze_key(treasury_key)
        )

        if fixed_supply:
            transaction = transaction.set_supply_type(SupplyType.FINITE).set_max_supply(
                initial_supply
            )
        else:
            transaction = transaction.set_supply_type(SupplyType.INFINITE)

        log.debug(
            "Creating token",
            name=name,
            symbol=symbol,
            treasury=str(treasury_account),
            fixed_supply=fixed_supply,
        )
        return self.submit(transaction, treasury_account.private_key)

    def get_token_info(self, token_id: TokenId):
        return TokenInfoQuery().set_token_id(token_id).execute(self.client)

    def mint_token(self, token_id: TokenId, amount: int, treasury_account: Account):
        """Mint `amount` base units of `token_id`, signed by the treasury.

        A mint beyond a fixed supply is reported through the receipt status.
        """
        transaction = TokenMintTransaction().set_token_id(token_id).set_amount(amount)
        return self.submit(transaction, treasury_account.private_key)

    def get_token_balance(self, account_id: AccountId, token_id: TokenId) -> int:
        """Return the `token_id` balance of `account_id`, 0 if it holds none."""
        balance = CryptoGetAccountBalanceQuery().set_account_id(account_id).execute(self.client)
        token_balances = {str(key): value for key, value in (balance.token_balances or {}).items()}
        return int(token_balances.get(str(token_id), 0))

    def associate_token(self, account: Account, token_id: TokenId):
        transaction = TokenAssociateTransaction().set_account_id(account.id).add_token_id(token_id)
        return self.submit(transaction, account.private_key)

    def create_token_transfer_transaction(
        self,
        transfers: Sequence[TokenTransfer],
        token_id: TokenId,
        payer_transaction_id: Optional[TransactionId] = None,
    ) -> TransferTransaction:
        """Build a frozen, unsigned transfer of `token_id` covering all `transfers`.

        The amounts must sum up to zero; the ledger rejects the transfer
        otherwise. Passing `payer_transaction_id` bills the fee to the account
        the transaction id was generated for, instead of the operator.
        """
        transaction = TransferTransaction()
        for transfer in transfers:
            transaction.add_token_transfer(token_id, transfer.account.id, transfer.amount)

        if payer_transaction_id is not None:
            transaction.set_transaction_id(payer_transaction_id)

        return self.freeze(transaction)

    def transfer_token(
        self, sender_account: Account, receiver_account: Account, token_id: TokenId, amount: int
    ):
        """Move `amount` of `token_id` from sender to receiver.

        Only the sender signs; the fee is paid by the operator.
        """
        transaction = self.create_token_transfer_transaction(
            [TokenTransfer(sender_account, -amount), TokenTransfer(receiver_account, amount)],
            token_id,
        )
        return self.execute_transaction(self.sign(transaction, sender_account.private_key))
