from typing import Optional, Union

import structlog

from hedera_scenario_player.constants import DEFAULT_NETWORK, NETWORKS, TIMEOUT
from hedera_scenario_player.exceptions.config import SettingsConfigurationError
from hedera_scenario_player.utils.configuration.base import ConfigMapping

log = structlog.get_logger(__name__)


class SettingsConfig(ConfigMapping):
    """Settings Configuration Setting interface and validator.

    Handles default values as well as exception handling on missing settings.

    Example scenario definition::

        >my_scenario.yaml
        ...
        settings:
          network: testnet
          timeout: 300
          operator: alice
        ...

    A `network` passed explicitly, e.g. from the command line, takes
    precedence over the one given in the definition.
    """

    CONFIGURATION_ERROR = SettingsConfigurationError

    def __init__(self, loaded_definition: dict, network: Optional[str] = None) -> None:
        super(SettingsConfig, self).__init__(loaded_definition.get("settings"))
        self._network_override = network
        self.validate()

    def validate(self):
        self.assert_option(
            self.network in NETWORKS,
            f"Network must be one of {list(NETWORKS)}, not {self.network!r}",
        )
        timeout = self.dict.get("timeout", TIMEOUT)
        self.assert_option(
            isinstance(timeout, int) and not isinstance(timeout, bool) and timeout > 0,
            f"Timeout must be a positive number of seconds, not {timeout!r}",
        )
        self.assert_option(
            isinstance(self.operator, (int, str)) and not isinstance(self.operator, bool),
            f"Operator must be an account name or table index, not {self.operator!r}",
        )

    @property
    def network(self) -> str:
        """The network to connect to. Defaults to testnet."""
        return self._network_override or self.dict.get("network", DEFAULT_NETWORK)

    @property
    def timeout(self) -> int:
        """Returns the scenario's set timeout in seconds."""
        return self.dict.get("timeout", TIMEOUT)

    @property
    def operator(self) -> Union[int, str]:
        """Reference of the account bound as operator when the scenario starts.

        Defaults to the first account of the account table.
        """
        return self.dict.get("operator", 0)
