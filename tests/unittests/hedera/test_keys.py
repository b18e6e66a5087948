import pytest
from hiero_sdk_python import PublicKey
from hiero_sdk_python.crypto.key_list import KeyList

from hedera_scenario_player.hedera.keys import SingleKey, ThresholdKey, key_fingerprint


def test_single_key_is_the_accounts_public_key(alice):
    key = SingleKey.from_account(alice)

    assert isinstance(key.to_sdk_key(), PublicKey)
    assert key_fingerprint(key.to_sdk_key()) == key_fingerprint(alice.public_key)


def test_single_key_quorum(alice, bob):
    key = SingleKey.from_account(alice)

    assert key.quorum_met([alice.private_key])
    assert key.quorum_met([bob.private_key, alice.private_key])
    assert not key.quorum_met([bob.private_key])
    assert not key.quorum_met([])


class TestThresholdKey:
    def test_is_an_sdk_key_list_with_threshold(self, alice, bob):
        key = ThresholdKey.from_accounts(1, [alice, bob])

        sdk_key = key.to_sdk_key()
        proto = sdk_key.to_proto_key()

        assert isinstance(sdk_key, KeyList)
        assert sdk_key.threshold == 1
        assert proto.thresholdKey.threshold == 1
        assert [k.SerializeToString() for k in proto.thresholdKey.keys.keys] == [
            key_fingerprint(alice.public_key),
            key_fingerprint(bob.public_key),
        ]

    @pytest.mark.parametrize("required", [0, 3, -1])
    def test_threshold_must_be_satisfiable(self, required, alice, bob):
        with pytest.raises(ValueError):
            ThresholdKey.from_accounts(required, [alice, bob])

    def test_one_of_two_is_met_by_either_member(self, alice, bob, carol):
        key = ThresholdKey.from_accounts(1, [alice, bob])

        assert key.quorum_met([alice.private_key])
        assert key.quorum_met([bob.private_key])
        assert not key.quorum_met([carol.private_key])

    def test_two_of_two_requires_both_members(self, alice, bob, carol):
        key = ThresholdKey.from_accounts(2, [alice, bob])

        assert not key.quorum_met([alice.private_key, carol.private_key])
        assert key.quorum_met([alice.private_key, bob.private_key])

    def test_same_signer_twice_counts_once(self, alice, bob):
        key = ThresholdKey.from_accounts(2, [alice, bob])

        assert not key.quorum_met([alice.private_key, alice.private_key])
