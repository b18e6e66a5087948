import functools
import json
import sys
import traceback
from decimal import Decimal
from pathlib import Path
from typing import Optional

import click
import gevent
import structlog
import yaml

from hedera_scenario_player import __version__, tasks
from hedera_scenario_player.constants import DEFAULT_NETWORK, NETWORKS
from hedera_scenario_player.exceptions import ScenarioAssertionError, ScenarioError
from hedera_scenario_player.exceptions.config import ConfigurationError
from hedera_scenario_player.hedera import AccountService
from hedera_scenario_player.runner import ScenarioRunner
from hedera_scenario_player.tasks.base import collect_tasks
from hedera_scenario_player.utils.configuration import AccountsConfig
from hedera_scenario_player.utils.logs import (
    DummyStream,
    configure_logging,
    construct_log_file_name,
)
from hedera_scenario_player.utils.version import get_complete_spec

log = structlog.get_logger(__name__)


def configure_logging_for_subcommand(log_file_name):
    click.secho(f"Writing log to {log_file_name}", fg="yellow", err=True)
    configure_logging(log_file_name)


def data_path_option(func):
    """Decorator for adding '--data-path' to subcommands."""

    @click.option(
        "--data-path",
        default=Path(str(Path.home().joinpath(".hedera", "scenario-player"))),
        type=click.Path(exists=False, dir_okay=True, file_okay=False),
        show_default=True,
    )
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        return func(*args, **kwargs)

    return wrapper


def network_option(func):
    """Decorator for adding '--network' to subcommands."""

    @click.option(
        "--network",
        type=click.Choice(NETWORKS),
        default=None,
        help="Network to run against. Overrides the scenario's network setting.",
    )
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        return func(*args, **kwargs)

    return wrapper


def accounts_file_option(required: bool):
    return click.option(
        "--accounts-file",
        required=required,
        default=None,
        type=click.Path(exists=True, dir_okay=False),
        help="YAML file holding the account table.",
    )


@click.group(invoke_without_command=True, context_settings={"max_content_width": 120})
@click.pass_context
def main(ctx):
    gevent.get_hub().exception_stream = DummyStream()
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@main.command(name="run")
@click.argument("scenario-file", type=click.Path(exists=True, dir_okay=False))
@accounts_file_option(required=False)
@network_option
@data_path_option
def run(data_path, scenario_file, accounts_file, network):
    """Execute a scenario as defined in scenario definition file.
    click entrypoint, this dispatches to `run_`.
    """
    data_path = Path(data_path)
    scenario_file = Path(scenario_file).absolute()
    log_file_name = construct_log_file_name("run", data_path, scenario_file)
    configure_logging_for_subcommand(log_file_name)
    run_(
        data_path=data_path,
        scenario_file=scenario_file,
        accounts_file=Path(accounts_file) if accounts_file else None,
        network=network,
    )


def run_(
    data_path: Path,
    scenario_file: Path,
    accounts_file: Optional[Path] = None,
    network: Optional[str] = None,
) -> None:
    """Execute a scenario as defined in scenario definition file.

    Calls :func:`sys.exit` when done, with the following status codes:

        Exit code 1x
        There was a problem talking to the ledger network, such as a
        transport error, or the SDK rejecting a request. This points at an
        issue with the network or the player.

        Exit code 2x
        There was an error when parsing or evaluating the given scenario
        definition file. This may be a syntax- or logic-related issue, or an
        unexpected transaction status.

        Exit code 3x
        There was an assertion error while executing the scenario. This points
        to the ledger behaving differently than the scenario expects.
    """
    log.info("Scenario Player version:", version_info=get_complete_spec())

    # Dynamically import valid Task classes from hedera_scenario_player.tasks package.
    collect_tasks(tasks)

    runner = None
    try:
        runner = ScenarioRunner(
            scenario_file=scenario_file,
            data_path=data_path,
            accounts_file=accounts_file,
            network=network,
        )
        runner.run_scenario()
    except ScenarioAssertionError as ex:
        log.error("Run finished", result="assertion errors", message=str(ex))
        click.secho(f"Assertion mismatch in {scenario_file.name}: {ex}", fg="red", err=True)
        exit_code = ex.exit_code
    except (ScenarioError, ConfigurationError) as ex:
        log.error("Run finished", result="scenario error", message=str(ex))
        click.secho(f"Invalid scenario {scenario_file.name}: {ex}", fg="red", err=True)
        exit_code = ex.exit_code
    except Exception as ex:
        log.exception("Exception while running scenario")
        click.secho(traceback.format_exc(), fg="red", err=True)
        exit_code = getattr(ex, "exit_code", 10)
    else:
        log.info("Run finished", result="success")
        exit_code = 0

    if runner is not None:
        click.echo(str(runner.root_task))
    sys.exit(exit_code)


@main.command(name="create-accounts")
@click.option("--count", default=5, show_default=True, type=click.IntRange(min=1))
@click.option(
    "--initial-balance",
    default="0",
    show_default=True,
    help="HBAR each new account is funded with.",
)
@accounts_file_option(required=True)
@network_option
@data_path_option
def create_accounts(count, initial_balance, accounts_file, network, data_path):
    """Create accounts funded by the first account of the account table.

    The new accounts are printed as YAML records, ready to be added to an
    account table.
    """
    configure_logging_for_subcommand(construct_log_file_name("create-accounts", Path(data_path)))

    try:
        balance = Decimal(initial_balance)
    except ArithmeticError:
        raise click.BadParameter(f"{initial_balance!r} is not a number", param_hint="--initial-balance")

    try:
        table = AccountsConfig.from_file(Path(accounts_file))
    except ConfigurationError as ex:
        raise click.ClickException(str(ex))
    if not table:
        raise click.ClickException(f"No accounts in {accounts_file} to fund the new accounts with")

    service = AccountService.for_network(network or DEFAULT_NETWORK, operator=table[0])
    try:
        created = [service.create_account(balance) for _ in range(count)]
    finally:
        service.close()

    click.echo(yaml.safe_dump(AccountsConfig.to_records(created), sort_keys=False), nl=False)


@main.command(name="version", help="Show versions of the scenario player and its environment.")
@click.option(
    "--short", is_flag=True, help="Only display the scenario player version string.", default=False
)
def version(short):
    if short:
        click.secho(message=__version__)
    else:
        spec = get_complete_spec()
        click.secho(message=json.dumps(spec, indent=2))
