from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from hiero_sdk_python import AccountId, PrivateKey


@dataclass(frozen=True)
class Account:
    """An account identifier paired with the private key controlling it.

    Records are loaded once from the account table, or returned by
    :meth:`AccountService.create_account`, and are never mutated afterwards.
    """

    id: AccountId
    private_key: PrivateKey
    name: Optional[str] = None

    @property
    def public_key(self):
        return self.private_key.public_key()

    def __str__(self):
        if self.name:
            return f"{self.name} ({self.id})"
        return str(self.id)


@dataclass(frozen=True)
class TokenTransfer:
    """One side of a token transfer.

    Negative amounts debit `account`, positive amounts credit it.
    """

    account: Account
    amount: int


@dataclass(frozen=True)
class TopicMessage:
    contents: str
    sequence_number: Optional[int] = None
    consensus_timestamp: Optional[datetime] = None
