import os
import pathlib
from typing import Optional

import jinja2
import structlog
import yaml

from hedera_scenario_player.exceptions.config import ScenarioConfigurationError
from hedera_scenario_player.utils.configuration.accounts import AccountsConfig
from hedera_scenario_player.utils.configuration.scenario import ScenarioConfig
from hedera_scenario_player.utils.configuration.settings import SettingsConfig

log = structlog.get_logger(__name__)


class ScenarioDefinition:
    """Interface for a Scenario `.yaml` file.

    Takes care of loading the yaml from the given `yaml_path`, and validates
    its contents.

    The file is rendered as jinja2 template first, with the process
    environment available as `env`. This keeps private keys out of scenario
    files::

        accounts:
          - id: 0.0.1001
            private_key: "{{ env.ALICE_KEY }}"

    An `accounts_file` replaces the definition's own `accounts` section.
    """

    def __init__(
        self,
        yaml_path: pathlib.Path,
        data_path: pathlib.Path,
        accounts_file: Optional[pathlib.Path] = None,
        network: Optional[str] = None,
    ) -> None:
        self._scenario_dir = None
        self.path = yaml_path
        self.data_path = data_path
        # Use the scenario file as jinja template and only parse the yaml, afterwards.
        with yaml_path.open() as f:
            yaml_template = jinja2.Template(f.read(), undefined=jinja2.StrictUndefined)
            try:
                rendered_yaml = yaml_template.render(env=os.environ)
            except jinja2.UndefinedError as e:
                raise ScenarioConfigurationError(
                    f"Undefined template variable in {yaml_path.name}: {e}"
                ) from e
            self._loaded = yaml.safe_load(rendered_yaml) or {}

        if not isinstance(self._loaded, dict):
            raise ScenarioConfigurationError(f"{yaml_path.name} is not a scenario definition!")

        self.settings = SettingsConfig(self._loaded, network=network)
        if accounts_file is not None:
            self.accounts = AccountsConfig.from_file(accounts_file)
        else:
            self.accounts = AccountsConfig.from_records(self._loaded.get("accounts"))
        self.scenario = ScenarioConfig(self._loaded)

    @property
    def name(self) -> str:
        """Return the name of the scenario file, sans extension."""
        return self.path.stem

    @property
    def scenario_dir(self) -> pathlib.Path:
        if not self._scenario_dir:
            self._scenario_dir = self.data_path.joinpath("scenarios", self.name)
            self._scenario_dir.mkdir(exist_ok=True, parents=True)
        return self._scenario_dir
