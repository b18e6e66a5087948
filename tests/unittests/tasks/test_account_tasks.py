from decimal import Decimal

import pytest

from hedera_scenario_player.constants import STORAGE_KEY_ACCOUNTS
from hedera_scenario_player.exceptions import ScenarioAssertionError, ScenarioError
from hedera_scenario_player.tasks.accounts import to_hbar


@pytest.mark.parametrize("value, expected", [(1, "1"), (2.5, "2.5"), ("0.1", "0.1"), (0.1, "0.1")])
def test_to_hbar_is_exact(value, expected):
    assert to_hbar(value) == Decimal(expected)


def test_select_operator_binds_funded_account(task_by_name, dummy_scenario_runner, bob):
    dummy_scenario_runner.accounts.find_funded_account.return_value = bob

    result = task_by_name("select_operator", {"balance_min": 10})()

    assert result is bob
    accounts, minimum = dummy_scenario_runner.accounts.find_funded_account.call_args[0]
    assert accounts is dummy_scenario_runner.definition.accounts
    assert minimum == Decimal(10)
    dummy_scenario_runner.client.set_operator.assert_called_once_with(bob)


def test_select_operator_requires_minimum(task_by_name):
    with pytest.raises(ScenarioError):
        task_by_name("select_operator", {})


def test_set_operator_resolves_reference(task_by_name, dummy_scenario_runner, carol):
    assert task_by_name("set_operator", {"account": 2})() is carol
    dummy_scenario_runner.client.set_operator.assert_called_once_with(carol)


class TestCreateAccount:
    def test_created_account_is_stored_under_its_name(
        self, task_by_name, dummy_scenario_runner, created_account
    ):
        dummy_scenario_runner.accounts.create_account.return_value = created_account

        account = task_by_name("create_account", {"name": "dave", "initial_balance": 2.5})()

        dummy_scenario_runner.accounts.create_account.assert_called_once_with(Decimal("2.5"))
        assert account.name == "dave"
        assert str(account.id) == str(created_account.id)
        assert dummy_scenario_runner.task_storage[STORAGE_KEY_ACCOUNTS]["dave"] is account
        assert dummy_scenario_runner.resolve_account("dave") is account

    def test_initial_balance_defaults_to_zero(
        self, task_by_name, dummy_scenario_runner, created_account
    ):
        dummy_scenario_runner.accounts.create_account.return_value = created_account

        task_by_name("create_account", {"name": "dave"})()

        dummy_scenario_runner.accounts.create_account.assert_called_once_with(Decimal(0))

    def test_name_taken_by_account_table_is_rejected(self, task_by_name):
        with pytest.raises(ScenarioError, match="bob"):
            task_by_name("create_account", {"name": "bob"})

    def test_creating_the_same_name_twice_fails(
        self, task_by_name, dummy_scenario_runner, created_account
    ):
        dummy_scenario_runner.accounts.create_account.return_value = created_account
        task_by_name("create_account", {"name": "dave"})()

        with pytest.raises(ScenarioError, match="dave"):
            task_by_name("create_account", {"name": "dave"})()

    @pytest.fixture
    def created_account(self, carol):
        return carol


class TestAssertHbarBalance:
    @pytest.fixture(autouse=True)
    def balance(self, dummy_scenario_runner):
        dummy_scenario_runner.accounts.get_hbar_balance.return_value = Decimal("12.5")

    def test_needs_a_bound(self, task_by_name):
        with pytest.raises(ScenarioError):
            task_by_name("assert_hbar_balance", {"account": "alice"})

    @pytest.mark.parametrize(
        "bounds",
        [{"balance": 12.5}, {"min": 12.5}, {"max": 12.5}, {"min": 10, "max": 20}],
    )
    def test_matching_balance_passes(self, task_by_name, dummy_scenario_runner, alice, bounds):
        result = task_by_name("assert_hbar_balance", {"account": "alice", **bounds})()

        assert result == Decimal("12.5")
        dummy_scenario_runner.accounts.get_hbar_balance.assert_called_once_with(alice.id)

    @pytest.mark.parametrize(
        "bounds, message",
        [
            ({"balance": 12}, "expected 12"),
            ({"min": 13}, "at least 13"),
            ({"max": 12.4}, "at most 12.4"),
        ],
    )
    def test_mismatching_balance_fails(self, task_by_name, bounds, message):
        with pytest.raises(ScenarioAssertionError, match=message):
            task_by_name("assert_hbar_balance", {"account": "bob", **bounds})()

    def test_unknown_account_fails(self, task_by_name):
        with pytest.raises(ScenarioError, match="nobody"):
            task_by_name("assert_hbar_balance", {"account": "nobody", "min": 1})()
