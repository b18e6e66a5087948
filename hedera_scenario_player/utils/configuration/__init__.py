from hedera_scenario_player.utils.configuration.accounts import AccountsConfig
from hedera_scenario_player.utils.configuration.scenario import ScenarioConfig
from hedera_scenario_player.utils.configuration.settings import SettingsConfig

__all__ = ["AccountsConfig", "ScenarioConfig", "SettingsConfig"]
