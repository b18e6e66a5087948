import logging
import logging.config
from datetime import datetime
from pathlib import Path

import structlog

FIRST_PARTY_PACKAGES = ("hedera_scenario_player",)


class DummyStream:
    def write(self, content):
        pass


def construct_log_file_name(sub_command: str, data_path: Path, scenario_fpath: Path = None) -> Path:
    directory = data_path
    if scenario_fpath:
        file_name = (
            f"scenario-player-{sub_command}_{scenario_fpath.stem}"
            f"_{datetime.now():%Y-%m-%dT%H:%M:%S}.log"
        )
        directory = directory.joinpath("scenarios", scenario_fpath.stem)
    else:
        file_name = f"scenario-player-{sub_command}_{datetime.now():%Y-%m-%dT%H:%M:%S}.log"
    return directory.joinpath(file_name)


def configure_logging(log_file_name: Path, console_level: str = "INFO") -> None:
    """Route structlog through the stdlib logging machinery.

    Events of our own packages are written to `log_file_name` at DEBUG level,
    one JSON object per line. The console only receives events at
    `console_level` or above, rendered for humans. Third party libraries log
    at INFO.
    """
    Path(log_file_name).parent.mkdir(exist_ok=True, parents=True)

    timestamper = structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S.%f")
    shared_processors = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        timestamper,
    ]

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "plain": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "processor": structlog.dev.ConsoleRenderer(colors=False),
                    "foreign_pre_chain": shared_processors,
                },
                "json": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "processor": structlog.processors.JSONRenderer(default=str),
                    "foreign_pre_chain": shared_processors,
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": console_level,
                    "formatter": "plain",
                },
                "debug-file": {
                    "class": "logging.FileHandler",
                    "level": "DEBUG",
                    "formatter": "json",
                    "filename": str(log_file_name),
                    "encoding": "utf-8",
                },
            },
            "loggers": {
                "": {"handlers": ["console", "debug-file"], "level": "INFO", "propagate": True},
                **{
                    package: {"level": "DEBUG", "propagate": True}
                    for package in FIRST_PARTY_PACKAGES
                },
            },
        }
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
