from hiero_sdk_python import AccountId, PrivateKey
from marshmallow import Schema, ValidationError, post_load
from marshmallow.fields import String

from hedera_scenario_player.exceptions.config import AccountConfigurationError
from hedera_scenario_player.hedera.types import Account


class AccountIdField(String):
    """A field for (de)serializing an :class:`AccountId` from and to its `shard.realm.num` string."""

    default_error_messages = {
        "empty": "Must not be empty!",
        "malformed": "Must be an account id of the form 'shard.realm.num'!",
    }

    def _deserialize(self, value, attr, data, **kwargs) -> AccountId:
        if not value:
            raise self.make_error("empty")

        deserialized_string = super(AccountIdField, self)._deserialize(value, attr, data, **kwargs)

        try:
            return AccountId.from_string(deserialized_string.strip())
        except (TypeError, ValueError) as e:
            raise self.make_error("malformed") from e

    def _serialize(self, value: AccountId, attr, obj, **kwargs) -> str:
        return str(value)


class PrivateKeyField(String):
    """A field for (de)serializing a :class:`PrivateKey` from and to a hex string.

    Both raw and DER encoded keys are accepted; keys are dumped DER encoded.
    """

    default_error_messages = {
        "empty": "Must not be empty!",
        "malformed": "Must be a hex encoded ED25519 or ECDSA private key!",
    }

    def _deserialize(self, value, attr, data, **kwargs) -> PrivateKey:
        if not value:
            raise self.make_error("empty")

        deserialized_string = super(PrivateKeyField, self)._deserialize(value, attr, data, **kwargs)

        try:
            return PrivateKey.from_string(deserialized_string.strip())
        except (TypeError, ValueError) as e:
            raise self.make_error("malformed") from e

    def _serialize(self, value: PrivateKey, attr, obj, **kwargs) -> str:
        return value.to_string_der()


class AccountSchema(Schema):
    """Schema of a single record of the account table.

    Loading a record yields an :class:`Account`. Dumping an :class:`Account`
    yields a record which loads to an equal account again.
    """

    id = AccountIdField(required=True)
    private_key = PrivateKeyField(required=True)
    name = String(load_default=None, allow_none=True)

    @post_load
    def make_account(self, data, **kwargs) -> Account:
        return Account(**data)

    def validate_and_deserialize(self, data_obj):
        """Validate `data_obj` and deserialize it to :class:`Account` instances.

        :raises AccountConfigurationError: if validation did not succeed.
        """
        try:
            return self.load(data_obj)
        except ValidationError as e:
            raise AccountConfigurationError(f"Invalid account table: {e.messages}") from e
