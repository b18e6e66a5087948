from typing import Any, Dict, Tuple

import structlog

from hedera_scenario_player.exceptions.config import ScenarioConfigurationError
from hedera_scenario_player.utils.configuration.base import ConfigMapping

log = structlog.get_logger(__name__)


class ScenarioConfig(ConfigMapping):
    """Thin wrapper class around the "scenario" setting section of a loaded scenario .yaml file.

    Example scenario yaml::

        >my_scenario.yaml
        ...
        scenario:
          serial: # Root task
            # Root config
            tasks:
              - ...
    """

    CONFIGURATION_ERROR = ScenarioConfigurationError

    def __init__(self, loaded_definition: dict) -> None:
        super(ScenarioConfig, self).__init__(loaded_definition.get("scenario"))
        self.validate()

    def validate(self):
        self.assert_option(self.dict, "Must specify 'scenario' setting section!")
        self.assert_option(
            isinstance(self.dict, dict), "The 'scenario' section must map a task type to its config!"
        )
        self.assert_option(
            len(self) == 1,
            "Multiple tasks sections defined in scenario configuration! Must be only one!",
        )

    @property
    def root_task(self) -> Tuple[str, Any]:
        """Return the name and config of the scenario's root task.

        The root task is typically one of 'serial' or 'parallel'; the runner
        instantiates its sub-tasks recursively.
        """
        (root_task_tuple,) = self.items()
        return root_task_tuple

    @property
    def root_config(self) -> Dict:
        _, root_task_config = self.root_task
        return root_task_config

    @property
    def root_class(self):
        """Return the Task class type configured for the scenario root task."""
        from hedera_scenario_player.tasks.base import get_task_class_for_type

        root_task_type, _ = self.root_task
        return get_task_class_for_type(root_task_type)
