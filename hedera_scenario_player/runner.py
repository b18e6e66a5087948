import re
from collections import defaultdict
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, Optional, Union

import structlog
from hiero_sdk_python import TokenId, TopicId

from hedera_scenario_player.constants import (
    OPERATOR_REFERENCE,
    RUN_NUMBER_FILENAME,
    STORAGE_KEY_ACCOUNTS,
    STORAGE_KEY_SUBSCRIPTIONS,
    STORAGE_KEY_TOKENS,
    STORAGE_KEY_TOPICS,
)
from hedera_scenario_player.definition import ScenarioDefinition
from hedera_scenario_player.exceptions import ScenarioError, UnknownEntityError
from hedera_scenario_player.hedera import (
    Account,
    AccountService,
    HederaClient,
    MessageService,
    TokenService,
    TopicSubscription,
)

if TYPE_CHECKING:
    from hedera_scenario_player.tasks.base import Task, TaskState

log = structlog.get_logger(__name__)

ENTITY_ID_PATTERN = re.compile(r"^\d+\.\d+\.\d+$")


def determine_run_number(scenario_dir: Path) -> int:
    """ Determine the current run number.

    We check for a run number file, and use any number that is logged there
    after incrementing it.
    """
    # TODO: Use advisory file locks to avoid concurrent read/writes on the
    # run_number_file.
    run_number_file = scenario_dir.joinpath(RUN_NUMBER_FILENAME)

    if run_number_file.exists():
        run_number = int(run_number_file.read_text()) + 1
    else:
        run_number = 0

    run_number_file.write_text(str(run_number))

    return run_number


class ScenarioRunner:
    """Run the scenario defined in `scenario_file` against a ledger network.

    The runner owns one client handle for the configured network, shared by
    :attr:`accounts`, :attr:`tokens` and :attr:`messages`. The operator
    configured in the definition's settings is bound to it before the first
    task runs.

    Entities created by tasks are kept in :attr:`task_storage`, keyed by kind
    and by the name the scenario gave them, so later tasks can refer to them.
    """

    def __init__(
        self,
        scenario_file: Path,
        data_path: Path,
        accounts_file: Optional[Path] = None,
        network: Optional[str] = None,
        task_state_callback: Optional[
            Callable[["ScenarioRunner", "Task", "TaskState"], None]
        ] = None,
    ) -> None:
        self.data_path = data_path

        self.task_count = 0
        self.running_task_count = 0
        self.task_cache: Dict[str, "Task"] = {}
        self.task_state_callback = task_state_callback
        # Storage for arbitrary data tasks might need to persist
        self.task_storage: Dict[str, dict] = defaultdict(dict)

        self.definition = ScenarioDefinition(
            scenario_file, data_path, accounts_file=accounts_file, network=network
        )

        self.run_number = determine_run_number(self.definition.scenario_dir)
        log.info("Run number", run_number=self.run_number)

        if not self.definition.accounts:
            raise ScenarioError("The account table is empty, at least one account is required")

        network = self.definition.settings.network
        self.client = HederaClient.for_network(network)
        self.accounts = AccountService(self.client.client, network=network)
        self.tokens = TokenService(self.client.client, network=network)
        self.messages = MessageService(self.client.client, network=network)

        self.client.set_operator(self.resolve_account(self.definition.settings.operator))

        task_config = self.definition.scenario.root_config
        task_class = self.definition.scenario.root_class
        self.root_task = task_class(runner=self, config=task_config)

    def resolve_account(self, reference: Union[int, str]) -> Account:
        """Return the account `reference` refers to.

        `reference` is either the literal `operator`, an index into the
        account table, the name of an account of the table, or the name an
        account was created under during this run.

        :raises UnknownEntityError: if `reference` matches no account.
        """
        if reference == OPERATOR_REFERENCE:
            operator = self.client.operator
            if operator is None:
                raise UnknownEntityError("No operator has been bound yet")
            return operator

        account = self.definition.accounts.get(reference)
        if account is None and isinstance(reference, str):
            account = self.task_storage[STORAGE_KEY_ACCOUNTS].get(reference)
        if account is None:
            raise UnknownEntityError(f"Unknown account {reference!r}")
        return account

    def resolve_token(self, reference: str) -> TokenId:
        """Return the token stored under the name `reference`, or parse it as `0.0.N` id."""
        token_id = self.task_storage[STORAGE_KEY_TOKENS].get(reference)
        if token_id is not None:
            return token_id
        if ENTITY_ID_PATTERN.match(str(reference)):
            return TokenId.from_string(str(reference))
        raise UnknownEntityError(f"Unknown token {reference!r}")

    def resolve_topic(self, reference: str) -> TopicId:
        """Return the topic stored under the name `reference`, or parse it as `0.0.N` id."""
        topic_id = self.task_storage[STORAGE_KEY_TOPICS].get(reference)
        if topic_id is not None:
            return topic_id
        if ENTITY_ID_PATTERN.match(str(reference)):
            return TopicId.from_string(str(reference))
        raise UnknownEntityError(f"Unknown topic {reference!r}")

    def resolve_subscription(self, reference: str) -> TopicSubscription:
        try:
            return self.task_storage[STORAGE_KEY_SUBSCRIPTIONS][reference]
        except KeyError:
            raise UnknownEntityError(f"Unknown subscription {reference!r}") from None

    def store_entity(self, kind: str, name: str, entity) -> None:
        """Keep `entity` under `name` for later tasks. Names are unique per kind."""
        storage = self.task_storage[kind]
        if name in storage:
            raise ScenarioError(f"A {kind[:-1]} named {name!r} exists already")
        storage[name] = entity
        log.debug("Stored entity", kind=kind, name=name, entity=str(entity))

    def run_scenario(self) -> None:
        """Run the root task.

        Whatever the outcome, every subscription opened during the run is
        cancelled and the client handle is closed afterwards.
        """
        try:
            self.root_task()
        finally:
            self.teardown()

    def teardown(self) -> None:
        try:
            for name, subscription in self.task_storage[STORAGE_KEY_SUBSCRIPTIONS].items():
                log.debug("Cancelling subscription", subscription=name)
                subscription.cancel()
        finally:
            self.client.close()

    def task_state_changed(self, task: "Task", state: "TaskState"):
        if self.task_state_callback:
            self.task_state_callback(self, task, state)
