from typing import Tuple

#: Networks a client handle can be built for.
NETWORKS: Tuple[str, ...] = ("mainnet", "testnet", "previewnet", "local")
DEFAULT_NETWORK = "testnet"

TINYBARS_PER_HBAR = 100_000_000
TIMEOUT = 200

#: Start time of a topic subscription meaning "earliest available message".
SUBSCRIPTION_START_EARLIEST = 0
SUBSCRIPTION_POLL_INTERVAL = 0.5  # seconds

#: Receipt status name every transaction task expects unless told otherwise.
DEFAULT_EXPECTED_STATUS = "SUCCESS"

#: Account reference resolving to the currently bound operator.
OPERATOR_REFERENCE = "operator"

# Keys of the runner's task storage.
STORAGE_KEY_ACCOUNTS = "accounts"
STORAGE_KEY_TOKENS = "tokens"
STORAGE_KEY_TOPICS = "topics"
STORAGE_KEY_SUBSCRIPTIONS = "subscriptions"
STORAGE_KEY_TRANSFERS = "transfers"

# DO NOT CHANGE THIS! Existing data directories rely on it.
RUN_NUMBER_FILENAME = "run_number.txt"
