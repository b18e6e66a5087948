import importlib
import inspect
import pkgutil
import time
from copy import copy
from datetime import timedelta
from enum import Enum
from typing import Any, Callable, Dict, Optional, Sequence, Type

import click
import gevent
import structlog
from gevent import Timeout, sleep
from hiero_sdk_python.exceptions import PrecheckError

from hedera_scenario_player import runner as scenario_runner
from hedera_scenario_player.constants import DEFAULT_EXPECTED_STATUS
from hedera_scenario_player.exceptions import (
    ScenarioAssertionError,
    ScenarioError,
    ScenarioTxError,
    UnknownTaskTypeError,
)
from hedera_scenario_player.hedera.client import status_name

log = structlog.get_logger(__name__)

NAME_TO_TASK: Dict[str, Type["Task"]] = {}


class TaskState(Enum):
    INITIALIZED = " "
    RUNNING = "•"
    FINISHED = "✔"
    ERRORED = "✗"


TASK_STATE_COLOR = {
    TaskState.INITIALIZED: "",
    TaskState.RUNNING: click.style("", fg="yellow", reset=False),
    TaskState.FINISHED: click.style("", fg="green", reset=False),
    TaskState.ERRORED: click.style("", fg="red", reset=False),
}

_TASK_ID = 0


class Task:
    _name: str

    #: Keys the task's config must provide.
    REQUIRED_KEYS: Sequence[str] = ()
    #: Seconds during which failed assertions are retried. Zero disables retries.
    DEFAULT_TIMEOUT = 0

    def __init__(
        self, runner: scenario_runner.ScenarioRunner, config: Any, parent: "Task" = None
    ) -> None:
        global _TASK_ID

        _TASK_ID = _TASK_ID + 1
        self.id = str(_TASK_ID)
        self._runner = runner
        self._config = copy(config)
        self._parent = parent
        self._state = TaskState.INITIALIZED
        self.exception: Optional[BaseException] = None
        self.level: int = parent.level + 1 if parent else 0
        self._start_time: Optional[float] = None
        self._stop_time: Optional[float] = None

        if self.REQUIRED_KEYS:
            if not isinstance(config, dict) or not all(key in config for key in self.REQUIRED_KEYS):
                raise ScenarioError(
                    f"Not all required keys provided for {self.__class__.__name__}. "
                    f"Required: {', '.join(self.REQUIRED_KEYS)}"
                )

        runner.task_cache[self.id] = self
        runner.task_count += 1

    def __call__(self, *args, **kwargs):
        log.info("Starting task", task=repr(self), id=self.id)
        self.state = TaskState.RUNNING
        self._runner.running_task_count += 1
        self._start_time = time.monotonic()
        try:
            timeout_s = self.retry_timeout
            # Zero means no timeout is desired
            if timeout_s and timeout_s > 0:
                log.debug("Running task with timeout", timeout=timeout_s)
                return_val = self._run_with_retries(timeout_s, *args, **kwargs)
            else:
                return_val = self._run(*args, **kwargs)
        except BaseException as ex:
            self.state = TaskState.ERRORED
            log.exception("Task errored", task=repr(self))
            self.exception = ex
            raise
        finally:
            self._stop_time = time.monotonic()
            self._runner.running_task_count -= 1

        runtime = self._stop_time - self._start_time
        log.info("Task successful", id=self.id, task=repr(self), runtime=runtime)
        self.state = TaskState.FINISHED
        return return_val

    def _run_with_retries(self, timeout_s, *args, **kwargs):
        exception: Optional[ScenarioAssertionError] = None
        timer = Timeout(timeout_s)
        try:
            with timer:
                while True:
                    try:
                        return self._run(*args, **kwargs)
                    except ScenarioAssertionError as ex:
                        exception = ex
                        log.debug("Assertion failed, retrying...", ex=str(exception))
                    sleep(1)
        except Timeout as ex:
            if ex is not timer:
                raise
            log.debug("Timeout reached", ex=str(exception))
            if exception:
                raise exception
            raise ScenarioError(f"Task did not finish within {timeout_s} seconds") from None

    def _run(self, *args, **kwargs):  # pylint: disable=unused-argument,no-self-use
        gevent.sleep(1)

    @property
    def retry_timeout(self) -> Optional[float]:
        # Config can be something else than a dictionary
        if isinstance(self._config, dict):
            return self._config.get("timeout", self.DEFAULT_TIMEOUT)
        return None

    @property
    def expected_status(self) -> str:
        expected = DEFAULT_EXPECTED_STATUS
        if isinstance(self._config, dict):
            expected = self._config.get("expected_status", DEFAULT_EXPECTED_STATUS)
        return str(expected).upper()

    def submit_expecting_status(self, submission: Callable[[], Any]):
        """Call `submission` and compare the resulting status to :attr:`expected_status`.

        The status is taken from the returned receipt, or from the precheck
        error the SDK raised instead of returning one.

        :raises ScenarioTxError: if the statuses differ.
        """
        try:
            receipt = submission()
        except PrecheckError as ex:
            receipt = None
            status = status_name(ex.status)
        else:
            status = status_name(receipt.status)

        if status != self.expected_status:
            raise ScenarioTxError(
                f"{self.__class__.__name__} finished with status {status}, "
                f"expected {self.expected_status}",
                status=status,
            )
        log.debug("Transaction status as expected", task=repr(self), status=status)
        return receipt

    def __repr__(self):
        return f"<{self.__class__.__name__}: {self._config}>"

    def __str__(self):
        color = TASK_STATE_COLOR[self.state]
        reset = click.style("", reset=True)
        return (
            f'{" " * self.level * 2}- [{color}{self.state.value}{reset}] '
            f'{color}{self.__class__.__name__.replace("Task", "")}{reset}'
            f"{self._duration}{self._str_details}"
        )

    @property
    def _str_details(self):
        return f": {self._config}"

    @property
    def _duration(self):
        duration = 0.0
        if self._start_time:
            if self._stop_time:
                duration = self._stop_time - self._start_time
            else:
                duration = time.monotonic() - self._start_time
        if duration:
            return " " + str(timedelta(seconds=duration))
        return ""

    @property
    def done(self):
        return self.state in {TaskState.FINISHED, TaskState.ERRORED}

    @property
    def state(self):
        return self._state

    @state.setter
    def state(self, new_state):
        self._state = new_state
        self._runner.task_state_changed(self, self._state)


def get_task_class_for_type(task_type: str) -> Type[Task]:
    task_class = NAME_TO_TASK.get(task_type)
    if not task_class:
        raise UnknownTaskTypeError(f'Task type "{task_type}" is unknown.')
    return task_class


def register_task(task_name, task):
    NAME_TO_TASK[task_name] = task


def collect_tasks(module):
    # If module is a package, discover inner packages / submodules
    for sub_module in pkgutil.iter_modules(path=module.__path__):
        _, sub_module_name, _ = sub_module
        sub_module_name = module.__name__ + "." + sub_module_name
        submodule = importlib.import_module(sub_module_name)
        collect_tasks_from_submodule(submodule)


def collect_tasks_from_submodule(submodule):
    for _, member in inspect.getmembers(submodule, inspect.isclass):
        base_classes = inspect.getmro(member)
        if Task in base_classes and hasattr(member, "_name"):
            register_task(member._name, member)
