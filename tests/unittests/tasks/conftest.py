import pytest

from hedera_scenario_player import tasks
from hedera_scenario_player.tasks.base import collect_tasks, get_task_class_for_type


@pytest.fixture(scope="session", autouse=True)
def _collect_tasks():
    collect_tasks(tasks)


@pytest.fixture
def task_by_name(dummy_scenario_runner):
    def get_task(task_type, config):
        task_class = get_task_class_for_type(task_type)
        return task_class(runner=dummy_scenario_runner, config=config)

    return get_task
