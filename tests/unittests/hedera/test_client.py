from unittest.mock import MagicMock, call, patch

import pytest
from hiero_sdk_python import ResponseCode

from hedera_scenario_player.hedera.accounts import AccountService
from hedera_scenario_player.hedera.client import HederaClient, status_name
from hedera_scenario_player.hedera.tokens import TokenService

module_path = "hedera_scenario_player.hedera.client"


@pytest.fixture
def sdk_client():
    return MagicMock(name="sdk_client")


@pytest.fixture
def hedera_client(sdk_client):
    return HederaClient(sdk_client, network="testnet")


@pytest.mark.parametrize(
    "status, expected",
    argvalues=[
        (ResponseCode.SUCCESS, "SUCCESS"),
        (ResponseCode.TOKEN_MAX_SUPPLY_REACHED.value, "TOKEN_MAX_SUPPLY_REACHED"),
        ("not-a-status", "not-a-status"),
    ],
    ids=["enum member", "plain int", "unknown value"],
)
def test_status_name(status, expected):
    assert status_name(status) == expected


class TestOperatorBinding:
    def test_set_operator_binds_account_on_the_sdk_client(self, hedera_client, sdk_client, alice):
        hedera_client.set_operator(alice)

        sdk_client.set_operator.assert_called_once_with(alice.id, alice.private_key)
        assert hedera_client.operator is alice

    def test_services_on_one_handle_share_the_operator(self, sdk_client, alice):
        accounts = AccountService(sdk_client)
        tokens = TokenService(sdk_client)

        accounts.set_operator(alice)

        assert tokens.operator is alice

    def test_services_on_different_handles_do_not_share_the_operator(self, alice):
        accounts = AccountService(MagicMock())
        tokens = TokenService(MagicMock())

        accounts.set_operator(alice)

        assert tokens.operator is None

    def test_operating_as_restores_previous_operator(self, hedera_client, sdk_client, alice, bob):
        hedera_client.set_operator(alice)

        with hedera_client.operating_as(bob):
            assert hedera_client.operator is bob

        assert hedera_client.operator is alice
        assert sdk_client.set_operator.call_args_list[-1] == call(alice.id, alice.private_key)

    def test_operating_as_restores_previous_operator_on_error(self, hedera_client, alice, bob):
        hedera_client.set_operator(alice)

        with pytest.raises(RuntimeError):
            with hedera_client.operating_as(bob):
                raise RuntimeError("boom")

        assert hedera_client.operator is alice

    def test_operating_as_requires_a_bound_operator(self, hedera_client, sdk_client, bob):
        with pytest.raises(ValueError, match="Bind an operator"):
            with hedera_client.operating_as(bob):
                pass

        assert hedera_client.operator is None
        sdk_client.set_operator.assert_not_called()

    def test_for_operator_requires_known_network(self, sdk_client, alice):
        with pytest.raises(ValueError):
            HederaClient(sdk_client).for_operator(alice)

    @patch(f"{module_path}.Network")
    @patch(f"{module_path}.Client")
    def test_for_operator_creates_a_separate_handle(
        self, mock_client_cls, mock_network_cls, hedera_client, alice
    ):
        other = hedera_client.for_operator(alice)

        mock_network_cls.assert_called_once_with("testnet")
        assert other.client is mock_client_cls.return_value
        assert other.client is not hedera_client.client
        other.client.set_operator.assert_called_once_with(alice.id, alice.private_key)
        assert hedera_client.operator is None

    @patch(f"{module_path}.Network")
    @patch(f"{module_path}.Client")
    def test_for_network_returns_instance_of_the_subclass(self, _client_cls, _network_cls):
        assert isinstance(TokenService.for_network("testnet"), TokenService)


class TestExecution:
    def test_execute_transaction_returns_receipt_whatever_its_status(
        self, hedera_client, sdk_client, receipt_for
    ):
        transaction = MagicMock()
        transaction.execute.return_value = receipt_for(ResponseCode.INSUFFICIENT_PAYER_BALANCE)

        receipt = hedera_client.execute_transaction(transaction)

        transaction.execute.assert_called_once_with(sdk_client)
        assert receipt.status == ResponseCode.INSUFFICIENT_PAYER_BALANCE

    def test_execute_transaction_propagates_sdk_errors(self, hedera_client):
        transaction = MagicMock()
        transaction.execute.side_effect = TimeoutError("no receipt")

        with pytest.raises(TimeoutError):
            hedera_client.execute_transaction(transaction)

    def test_submit_freezes_signs_and_executes(
        self, hedera_client, sdk_client, fluent_mock, receipt_for, alice, bob
    ):
        transaction = fluent_mock()
        transaction.execute.return_value = receipt_for()

        hedera_client.submit(transaction, alice.private_key, bob.private_key)

        transaction.freeze_with.assert_called_once_with(sdk_client)
        assert transaction.sign.call_args_list == [call(alice.private_key), call(bob.private_key)]
        transaction.execute.assert_called_once_with(sdk_client)

    def test_close_closes_sdk_client(self, hedera_client, sdk_client):
        hedera_client.close()
        sdk_client.close.assert_called_once_with()
