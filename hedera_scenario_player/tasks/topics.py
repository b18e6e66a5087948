from typing import Any, List, Sequence

import gevent
import structlog

from hedera_scenario_player import runner as scenario_runner
from hedera_scenario_player.constants import (
    DEFAULT_EXPECTED_STATUS,
    STORAGE_KEY_SUBSCRIPTIONS,
    STORAGE_KEY_TOPICS,
    SUBSCRIPTION_START_EARLIEST,
)
from hedera_scenario_player.exceptions import ScenarioAssertionError, ScenarioError
from hedera_scenario_player.exceptions.ledger import EntityCreationError
from hedera_scenario_player.hedera import SingleKey, SubmitKey, ThresholdKey
from hedera_scenario_player.tasks.base import Task

log = structlog.get_logger(__name__)


def is_subsequence(expected: Sequence[str], received: Sequence[str]) -> bool:
    """Return whether all of `expected` occur in `received`, in the same order."""
    remaining = iter(received)
    return all(message in remaining for message in expected)


class CreateTopicTask(Task):
    """Create a consensus topic guarded by a submit key and keep it under ``store_as``.

    The submit key is either a single account's key, or an M-of-N threshold
    key over several accounts::

        - create_topic:
            memo: "single key"
            submit_key: {account: operator}
            store_as: single

        - create_topic:
            memo: "1 of 2"
            submit_key: {threshold: 1, accounts: [alice, bob]}
            admin: operator
            store_as: shared
    """

    _name = "create_topic"
    REQUIRED_KEYS = ("submit_key", "store_as")

    def __init__(
        self, runner: scenario_runner.ScenarioRunner, config: Any, parent: "Task" = None
    ) -> None:
        super().__init__(runner, config, parent)
        submit_key = config["submit_key"]
        if not isinstance(submit_key, dict) or not (
            "account" in submit_key or {"threshold", "accounts"} <= submit_key.keys()
        ):
            raise ScenarioError(
                "'submit_key' must give either an 'account', or a 'threshold' and 'accounts'"
            )

    def build_submit_key(self) -> SubmitKey:
        submit_key = self._config["submit_key"]
        if "account" in submit_key:
            return SingleKey.from_account(self._runner.resolve_account(submit_key["account"]))

        accounts = [self._runner.resolve_account(ref) for ref in submit_key["accounts"]]
        try:
            return ThresholdKey.from_accounts(int(submit_key["threshold"]), accounts)
        except ValueError as ex:
            raise ScenarioError(str(ex)) from ex

    def _run(self, *args, **kwargs):  # pylint: disable=unused-argument
        submit_key = self.build_submit_key()
        admin = None
        if "admin" in self._config:
            admin = self._runner.resolve_account(self._config["admin"])

        receipt = self.submit_expecting_status(
            lambda: self._runner.messages.create_topic(
                self._config.get("memo", ""), submit_key, admin_account=admin
            )
        )
        if receipt is None or not receipt.topic_id:
            if self.expected_status != DEFAULT_EXPECTED_STATUS:
                return None
            raise EntityCreationError("Topic creation failed!")

        store_as = str(self._config["store_as"])
        self._runner.store_entity(STORAGE_KEY_TOPICS, store_as, receipt.topic_id)
        log.info("Topic created", topic=store_as, topic_id=str(receipt.topic_id))
        return receipt.topic_id


class PublishMessageTask(Task):
    """Publish a message to a topic, signed by the accounts listed in ``signers``.

    The operator always signs as fee payer, so topics guarded by the
    operator's own key need no further signers.

    Example::

        - publish_message: {topic: shared, message: "hello", signers: [bob]}
    """

    _name = "publish_message"
    REQUIRED_KEYS = ("topic", "message")

    def _run(self, *args, **kwargs):  # pylint: disable=unused-argument
        topic_id = self._runner.resolve_topic(self._config["topic"])
        signers = [self._runner.resolve_account(ref) for ref in self._config.get("signers", [])]
        return self.submit_expecting_status(
            lambda: self._runner.messages.publish_message(
                topic_id,
                str(self._config["message"]),
                *[account.private_key for account in signers],
            )
        )


class SubscribeTopicTask(Task):
    """Open a subscription to a topic and keep it under ``store_as``.

    ``start_time`` is given in seconds since the epoch; it defaults to 0,
    which replays the topic from its first message. The subscription stays
    open until the scenario ends.
    """

    _name = "subscribe_topic"
    REQUIRED_KEYS = ("topic", "store_as")

    def _run(self, *args, **kwargs):  # pylint: disable=unused-argument
        topic_id = self._runner.resolve_topic(self._config["topic"])
        store_as = str(self._config["store_as"])

        def on_message(contents: str) -> None:
            log.info("Topic message", subscription=store_as, contents=contents)

        subscription = self._runner.messages.subscribe_to_topic(
            topic_id, self._config.get("start_time", SUBSCRIPTION_START_EARLIEST), on_message
        )
        try:
            self._runner.store_entity(STORAGE_KEY_SUBSCRIPTIONS, store_as, subscription)
        except ScenarioError:
            subscription.cancel()
            raise
        return subscription


class AssertMessagesTask(Task):
    """Wait until a subscription received the given ``messages``, in that order.

    Waits for at most ``timeout`` seconds, defaulting to the scenario's
    timeout setting.

    Example::

        - assert_messages: {subscription: single_sub, messages: ["hello"], timeout: 60}
    """

    _name = "assert_messages"
    REQUIRED_KEYS = ("subscription", "messages")

    @property
    def retry_timeout(self):
        # The wait below is bounded by the timeout already.
        return None

    def _run(self, *args, **kwargs):  # pylint: disable=unused-argument
        subscription = self._runner.resolve_subscription(self._config["subscription"])
        expected: List[str] = [str(message) for message in self._config["messages"]]
        timeout = self._config.get("timeout", self._runner.definition.settings.timeout)

        try:
            with gevent.Timeout(timeout):
                count = len(expected)
                while not is_subsequence(expected, subscription.contents):
                    subscription.wait_for_messages(count, timeout)
                    count = len(subscription.messages) + 1
        except gevent.Timeout:
            raise ScenarioAssertionError(
                f"Expected messages {expected} within {timeout} seconds, "
                f"received {subscription.contents}"
            ) from None
        return subscription.contents
