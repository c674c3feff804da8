import sys
from pathlib import Path

import click
import structlog

from rpc_player import __version__
from rpc_player.context import PlayerContext
from rpc_player.definition import PlanDefinition
from rpc_player.exceptions import ConfigurationError
from rpc_player.utils.logs import configure_logging

log = structlog.get_logger(__name__)


@click.group(invoke_without_command=True, context_settings={"max_content_width": 120})
@click.option(
    "--log-level",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Minimum level of log entries written.",
)
@click.option("--log-file", type=click.Path(dir_okay=False), default=None)
@click.option("--log-json", is_flag=True, default=False, help="Write logs as JSON lines.")
@click.version_option(__version__)
@click.pass_context
def main(ctx, log_level, log_file, log_json):
    configure_logging(log_level, Path(log_file) if log_file else None, log_json)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


def load_plan(plan_file) -> PlanDefinition:
    try:
        return PlanDefinition(Path(plan_file))
    except ConfigurationError as e:
        raise click.ClickException(str(e))


@main.command(name="validate")
@click.argument("plan-file", type=click.Path(exists=True, dir_okay=False))
def validate(plan_file):
    """Validate the wallets of PLAN_FILE and load their keys."""
    plan = load_plan(plan_file)
    if not plan.validate_wallets(PlayerContext()):
        click.secho(f"Wallets of plan {plan.name} are invalid, see log for details.", fg="red")
        sys.exit(1)
    click.secho(f"All {len(plan.wallets)} wallet(s) of plan {plan.name} are valid.", fg="green")


@main.command(name="wallets")
@click.argument("plan-file", type=click.Path(exists=True, dir_okay=False))
@click.option("--pattern", default=".*", show_default=True, help="Wallet name filter (regex).")
@click.option("--shard-key", default=None, help="Print only the wallet selected for this key.")
def wallets(plan_file, pattern, shard_key):
    """List the wallets of PLAN_FILE matching PATTERN.

    Keys are not loaded; addresses are shown as declared in the plan.
    """
    plan = load_plan(plan_file)
    if shard_key is not None:
        name = plan.wallets.select_name(pattern, shard_key)
        if name is None:
            raise click.ClickException(f"No wallet matches pattern {pattern!r}")
        names = [name]
    else:
        names = plan.wallets.matching_names(pattern)
    for name in names:
        spec = plan.wallets[name]
        click.echo(f"{name}\t{spec.address or '-'}")


if __name__ == "__main__":
    main()
