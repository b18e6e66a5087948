from collections.abc import Mapping
from typing import Optional, Union

import structlog

from hedera_scenario_player.exceptions.config import ConfigurationError

log = structlog.get_logger(__name__)


class ConfigMapping(Mapping):
    """Read-only view on one section of a loaded scenario definition.

    Subclasses check their section in :meth:`validate` and expose its options
    as properties, filling in defaults for options that were left out.
    """

    CONFIGURATION_ERROR = ConfigurationError

    def __init__(self, section: Optional[Mapping]):
        self.dict = section or {}

    def __getitem__(self, item):
        return self.dict[item]

    def __iter__(self):
        return iter(self.dict)

    def __len__(self):
        return len(self.dict)

    def __eq__(self, other):
        if isinstance(other, dict):
            return self.dict == other
        elif isinstance(other, ConfigMapping):
            return self.dict == other.dict
        return NotImplemented

    def __repr__(self):
        return f"{self.__class__.__qualname__}({self.dict})"

    @classmethod
    def assert_option(cls, expression, err: Optional[Union[str, Exception]] = None):
        """Raise :attr:`CONFIGURATION_ERROR` (or `err` itself, if it is an exception)
        unless `expression` holds.
        """
        if expression:
            return
        if err is None or isinstance(err, str):
            raise cls.CONFIGURATION_ERROR(err)
        raise err

    def validate(self):
        """Validate the configuration section; the default accepts anything."""
