from hedera_scenario_player.exceptions.scenario import (
    ScenarioAssertionError,
    ScenarioError,
    ScenarioTxError,
    UnknownEntityError,
    UnknownTaskTypeError,
)

__all__ = [
    "ScenarioAssertionError",
    "ScenarioError",
    "ScenarioTxError",
    "UnknownEntityError",
    "UnknownTaskTypeError",
]
