class ConfigurationError(ValueError):
    """Generic error thrown if there was an error while reading the scenario file."""

    exit_code = 22


class AccountConfigurationError(ConfigurationError):
    """The account table is malformed.

    This includes unparsable account ids or private keys, as well as
    duplicate account names.
    """


class ScenarioConfigurationError(ConfigurationError):
    """An error occurred while validating the scenario setting of a scenario file."""


class SettingsConfigurationError(ConfigurationError):
    """An error occurred while validating the settings section of a scenario file."""
