from typing import Any, List

import click
import gevent
import structlog
from gevent import Greenlet
from gevent.pool import Pool

from hedera_scenario_player import runner as scenario_runner
from hedera_scenario_player.tasks.base import Task, get_task_class_for_type

log = structlog.get_logger(__name__)


class SerialTask(Task):
    """Run the configured sub-tasks one after the other.

    Example::

        - serial:
            name: "Setup"
            repeat: 2
            tasks:
              - create_account: {name: carol, initial_balance: 1}
              - wait: 3
    """

    _name = "serial"

    def __init__(
        self, runner: scenario_runner.ScenarioRunner, config: Any, parent: "Task" = None
    ) -> None:
        super().__init__(runner, config, parent)
        self._label = config.get("name")

        self._tasks: List[Task] = []
        for _ in range(config.get("repeat", 1)):
            for task in self._config.get("tasks", []):
                for task_type, task_config in task.items():
                    task_class = get_task_class_for_type(task_type)
                    self._tasks.append(
                        task_class(runner=self._runner, config=task_config, parent=self)
                    )

    def _run(self, *args, **kwargs):  # pylint: disable=unused-argument
        for task in self._tasks:
            task()

    @property
    def _str_details(self):
        name = ""
        if self._label:
            name = f' - {click.style(self._label, fg="blue")}'
        tasks = "\n".join(str(t) for t in self._tasks)
        return f"{name}\n{tasks}"


class ParallelTask(SerialTask):
    """Run the configured sub-tasks concurrently, each in its own greenlet.

    With `concurrency` set, at most that many sub-tasks run at the same time.
    The first failing sub-task fails the whole group.
    """

    _name = "parallel"

    def _run(self, *args, **kwargs):
        pool = Pool(size=self._config.get("concurrency", None))
        for task in self._tasks:
            pool.start(Greenlet(task))
        pool.join(raise_error=True)


class WaitTask(Task):
    _name = "wait"

    def _run(self, *args, **kwargs):  # pylint: disable=unused-argument
        gevent.sleep(self._config)
