from collections import defaultdict
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from hiero_sdk_python import AccountId, PrivateKey, ResponseCode

from hedera_scenario_player.hedera.types import Account
from hedera_scenario_player.runner import ScenarioRunner
from hedera_scenario_player.utils.configuration.accounts import AccountsConfig


class FluentMock(MagicMock):
    """A stand-in for SDK builders: every public method returns the mock itself.

    Setters, `freeze_with` and `sign` can be chained as on the real thing;
    results of other calls (`execute`, ...) are configured explicitly.
    """

    def _get_child_mock(self, **kwargs):
        name = kwargs.get("name") or ""
        if name.startswith("_"):
            return MagicMock(**kwargs)
        return MagicMock(return_value=self, **kwargs)


def make_account(num: int, name: str = None) -> Account:
    return Account(
        id=AccountId.from_string(f"0.0.{num}"),
        private_key=PrivateKey.generate_ed25519(),
        name=name,
    )


@pytest.fixture
def fluent_mock():
    return FluentMock


@pytest.fixture
def alice():
    return make_account(1001, "alice")


@pytest.fixture
def bob():
    return make_account(1002, "bob")


@pytest.fixture
def carol():
    return make_account(1003)


@pytest.fixture
def receipt_for():
    """Build a receipt carrying the given status and created entity ids."""

    def build(status=ResponseCode.SUCCESS, **entity_ids):
        fields = {"account_id": None, "token_id": None, "topic_id": None}
        fields.update(entity_ids)
        return SimpleNamespace(status=status, **fields)

    return build


@pytest.fixture
def minimal_definition_dict():
    """A dictionary with the minimum required keys for instantiating any ConfigMapping."""
    return {
        "settings": {},
        "accounts": [],
        "scenario": {"serial": {"tasks": [{"wait": 1}]}},
    }


@pytest.fixture
def dummy_scenario_runner(alice, bob, carol, tmp_path):
    """A :class:`ScenarioRunner` with ledger services replaced by mocks.

    The account table holds alice, bob and the unnamed account 0.0.1003;
    alice is bound as operator.
    """
    runner = ScenarioRunner.__new__(ScenarioRunner)
    runner.data_path = tmp_path
    runner.task_count = 0
    runner.running_task_count = 0
    runner.task_cache = {}
    runner.task_state_callback = None
    runner.task_storage = defaultdict(dict)
    runner.definition = SimpleNamespace(
        accounts=AccountsConfig([alice, bob, carol]),
        settings=SimpleNamespace(timeout=1, network="testnet", operator=0),
    )
    runner.client = MagicMock(name="client")
    runner.client.operator = alice
    runner.accounts = MagicMock(name="accounts")
    runner.tokens = MagicMock(name="tokens")
    runner.messages = MagicMock(name="messages")
    return runner
