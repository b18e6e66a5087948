from datetime import datetime, timezone
from typing import Callable, List, Optional, Union

import gevent
import structlog
from hiero_sdk_python import (
    TopicCreateTransaction,
    TopicId,
    TopicMessageQuery,
    TopicMessageSubmitTransaction,
)

from hedera_scenario_player.constants import SUBSCRIPTION_POLL_INTERVAL
from hedera_scenario_player.exceptions.ledger import SubscriptionError
from hedera_scenario_player.hedera.client import HederaClient
from hedera_scenario_player.hedera.keys import SubmitKey
from hedera_scenario_player.hedera.types import Account, TopicMessage

log = structlog.get_logger(__name__)


def to_start_time(start_time: Union[int, float, datetime]) -> datetime:
    """Convert seconds since the epoch to an aware datetime; 0 is the earliest message."""
    if isinstance(start_time, datetime):
        return start_time
    return datetime.fromtimestamp(start_time, tz=timezone.utc)


class TopicSubscription:
    """Handle of a running topic subscription.

    Messages are delivered by the SDK's stream on a thread of its own. Each
    message is decoded to text, recorded in :attr:`messages` and handed to the
    `on_message` callback; redelivered sequence numbers are dropped. When the
    stream errors, the error is kept in :attr:`error` and the subscription
    stops being :attr:`active`; it is not reconnected.

    The stream keeps running until :meth:`cancel` is called. Use the handle as
    a context manager to have that happen on every exit path::

        with service.subscribe_to_topic(topic_id, 0, print) as subscription:
            subscription.wait_for_messages(1, timeout=30)
    """

    def __init__(
        self,
        topic_id: TopicId,
        on_message: Optional[Callable[[str], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        self.topic_id = topic_id
        self.messages: List[TopicMessage] = []
        self.error: Optional[Exception] = None
        self.cancelled = False
        self._on_message = on_message
        self._on_error = on_error
        self._seen_sequence_numbers = set()
        self._handle = None

    def _attach(self, handle) -> None:
        self._handle = handle

    def _receive(self, message) -> None:
        sequence_number = message.sequence_number
        if sequence_number is not None:
            if sequence_number in self._seen_sequence_numbers:
                log.debug(
                    "Dropping redelivered message",
                    topic_id=str(self.topic_id),
                    sequence_number=sequence_number,
                )
                return
            self._seen_sequence_numbers.add(sequence_number)

        decoded = TopicMessage(
            contents=bytes(message.contents).decode("utf-8"),
            sequence_number=sequence_number,
            consensus_timestamp=message.consensus_timestamp,
        )
        self.messages.append(decoded)
        log.debug("Message received", topic_id=str(self.topic_id), sequence_number=sequence_number)
        if self._on_message is not None:
            self._on_message(decoded.contents)

    def _fail(self, error: Exception) -> None:
        log.error("Topic subscription errored", topic_id=str(self.topic_id), error=str(error))
        self.error = error
        if self._on_error is not None:
            self._on_error(error)

    @property
    def active(self) -> bool:
        return not self.cancelled and self.error is None

    @property
    def contents(self) -> List[str]:
        return [message.contents for message in self.messages]

    def cancel(self) -> None:
        """Stop the stream. Calling this more than once is harmless."""
        if self.cancelled:
            return
        self.cancelled = True
        if self._handle is not None:
            self._handle.cancel()
        log.info("Topic subscription cancelled", topic_id=str(self.topic_id))

    def wait_for_messages(self, count: int, timeout: float) -> List[TopicMessage]:
        """Block until at least `count` messages arrived.

        :raises gevent.Timeout: if they did not arrive within `timeout` seconds.
        :raises SubscriptionError: if the stream errored or was cancelled first.
        """
        with gevent.Timeout(timeout):
            while len(self.messages) < count:
                if self.error is not None:
                    raise SubscriptionError(
                        f"Subscription to topic {self.topic_id} errored"
                    ) from self.error
                if self.cancelled:
                    raise SubscriptionError(f"Subscription to topic {self.topic_id} was cancelled")
                gevent.sleep(SUBSCRIPTION_POLL_INTERVAL)
        return list(self.messages)

    def __enter__(self) -> "TopicSubscription":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.cancel()


class MessageService(HederaClient):
    def create_topic(
        self, memo: str, submit_key: SubmitKey, admin_account: Optional[Account] = None
    ):
        """Create a topic only messages signed according to `submit_key` may be published to.

        Collecting a signing quorum for a :class:`ThresholdKey` is up to the
        publisher; the key structure is only attached to the topic here.
        """
        transaction = TopicCreateTransaction().set_memo(memo).set_submit_key(
            submit_key.to_sdk_key()
        )
        signing_keys = []
        if admin_account is not None:
            transaction = transaction.set_admin_key(admin_account.public_key)
            signing_keys.append(admin_account.private_key)
        return self.submit(transaction, *signing_keys)

    def publish_message(self, topic_id: TopicId, message: str, *signing_keys):
        """Submit `message` to `topic_id`, signed with each of `signing_keys`.

        Topics guarded by a submit key reject messages lacking the required
        signatures.
        """
        transaction = TopicMessageSubmitTransaction().set_topic_id(topic_id).set_message(message)
        return self.submit(transaction, *signing_keys)

    def subscribe_to_topic(
        self,
        topic_id: TopicId,
        start_time: Union[int, float, datetime],
        on_message: Callable[[str], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> TopicSubscription:
        """Stream the messages of `topic_id` from `start_time` on.

        The returned handle must be cancelled to release the stream.
        """
        subscription = TopicSubscription(topic_id, on_message=on_message, on_error=on_error)
        query = TopicMessageQuery().set_topic_id(topic_id).set_start_time(to_start_time(start_time))
        handle = query.subscribe(
            self.client, on_message=subscription._receive, on_error=subscription._fail
        )
        subscription._attach(handle)
        log.info("Subscribed to topic", topic_id=str(topic_id), start_time=str(start_time))
        return subscription
