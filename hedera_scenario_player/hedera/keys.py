"""Submit key variants for consensus topics.

A topic's submit key is either a single public key or an M-of-N threshold
group of public keys. Both variants hand out the matching SDK key
(:meth:`SubmitKey.to_sdk_key`), which is what topic transactions accept,
and both state which set of private keys forms a signing quorum.
"""
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

from hiero_sdk_python import PublicKey
from hiero_sdk_python.crypto.key import Key
from hiero_sdk_python.crypto.key_list import KeyList

from hedera_scenario_player.hedera.types import Account


def key_fingerprint(public_key: Key) -> bytes:
    """Return a comparable byte representation of an SDK key."""
    return public_key.to_proto_key().SerializeToString()


class SubmitKey:
    def to_sdk_key(self) -> Key:
        raise NotImplementedError

    def quorum_met(self, private_keys: Iterable) -> bool:
        """Return whether signatures of `private_keys` satisfy this key."""
        raise NotImplementedError


@dataclass(frozen=True)
class SingleKey(SubmitKey):
    public_key: PublicKey

    @classmethod
    def from_account(cls, account: Account) -> "SingleKey":
        return cls(account.public_key)

    def to_sdk_key(self) -> PublicKey:
        return self.public_key

    def quorum_met(self, private_keys: Iterable) -> bool:
        signing = {key_fingerprint(key.public_key()) for key in private_keys}
        return key_fingerprint(self.public_key) in signing


@dataclass(frozen=True)
class ThresholdKey(SubmitKey):
    """An M-of-N key list: any `required` of `public_keys` may sign."""

    required: int
    public_keys: Tuple[PublicKey, ...]

    def __post_init__(self):
        if not 1 <= self.required <= len(self.public_keys):
            raise ValueError(
                f"Threshold must be between 1 and {len(self.public_keys)}, got {self.required}"
            )

    @classmethod
    def from_accounts(cls, required: int, accounts: Sequence[Account]) -> "ThresholdKey":
        return cls(required, tuple(account.public_key for account in accounts))

    def to_sdk_key(self) -> KeyList:
        return KeyList(list(self.public_keys), threshold=self.required)

    def quorum_met(self, private_keys: Iterable) -> bool:
        members = {key_fingerprint(key) for key in self.public_keys}
        signing = {key_fingerprint(key.public_key()) for key in private_keys}
        return len(members & signing) >= self.required
