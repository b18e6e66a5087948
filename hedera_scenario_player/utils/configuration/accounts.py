import pathlib
from collections.abc import Sequence
from typing import Iterable, List, Optional, Union

import structlog
import yaml

from hedera_scenario_player.constants import OPERATOR_REFERENCE
from hedera_scenario_player.exceptions.config import AccountConfigurationError
from hedera_scenario_player.hedera.types import Account
from hedera_scenario_player.schemas import AccountSchema

log = structlog.get_logger(__name__)


class AccountsConfig(Sequence):
    """The account table: pre-funded accounts a scenario may act as.

    Example scenario definition section::

        >my_scenario.yaml
        ...
        accounts:
          - id: 0.0.1001
            private_key: "302e020100300506032b657004220420..."
            name: alice
          - id: 0.0.1002
            private_key: "{{ env.BOB_KEY }}"
        ...

    The same list may live in a file of its own, either as a top-level list
    or below an `accounts` key, and is then loaded with :meth:`from_file`.

    Accounts are referenced by their position in the table or by their name.
    Names must be unique and must not shadow the `operator` reference.
    """

    CONFIGURATION_ERROR = AccountConfigurationError

    def __init__(self, accounts: Iterable[Account]) -> None:
        self._accounts = tuple(accounts)
        self.validate()

    @classmethod
    def from_records(cls, records) -> "AccountsConfig":
        if records is None:
            records = []
        if not isinstance(records, list):
            raise cls.CONFIGURATION_ERROR("The account table must be a list of account records!")
        return cls(AccountSchema(many=True).validate_and_deserialize(records))

    @classmethod
    def from_file(cls, path: pathlib.Path) -> "AccountsConfig":
        with path.open() as f:
            loaded = yaml.safe_load(f)
        if isinstance(loaded, dict):
            loaded = loaded.get("accounts")
        log.debug("Loaded account table", path=str(path))
        return cls.from_records(loaded)

    @staticmethod
    def to_records(accounts: Iterable[Account]) -> List[dict]:
        """Dump `accounts` to records :meth:`from_records` accepts."""
        records = AccountSchema(many=True).dump(accounts)
        for record in records:
            if record.get("name") is None:
                record.pop("name", None)
        return records

    def validate(self):
        names = [account.name for account in self._accounts if account.name]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise self.CONFIGURATION_ERROR(f"Duplicate account names in account table: {duplicates}")
        if OPERATOR_REFERENCE in names:
            raise self.CONFIGURATION_ERROR(
                f"'{OPERATOR_REFERENCE}' is reserved and cannot be used as account name"
            )

    def __getitem__(self, item):
        return self._accounts[item]

    def __len__(self):
        return len(self._accounts)

    def __repr__(self):
        return f"{self.__class__.__qualname__}({[str(account) for account in self._accounts]})"

    def get(self, reference: Union[int, str]) -> Optional[Account]:
        """Return the account at table index `reference`, or named `reference`."""
        if isinstance(reference, bool):
            return None
        if isinstance(reference, int):
            if 0 <= reference < len(self):
                return self._accounts[reference]
            return None
        for account in self._accounts:
            if account.name == reference:
                return account
        return None
