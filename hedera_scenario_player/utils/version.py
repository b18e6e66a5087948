import platform
import sys
from importlib import metadata

from hedera_scenario_player import __version__

SDK_DISTRIBUTION = "hiero-sdk-python"


def get_complete_spec():
    """Gather system specification and add scenario player and SDK information."""
    try:
        sdk_version = metadata.version(SDK_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        sdk_version = "not installed"
    return {
        "hedera_scenario_player": __version__,
        SDK_DISTRIBUTION: sdk_version,
        "python_implementation": platform.python_implementation(),
        "python_version": platform.python_version(),
        "system": f"{platform.system()} {platform.machine()}",
        "platform": sys.platform,
    }
