"""Click-based CLI for SMSYNC - Shopify-Mirakl Sync."""

from __future__ import annotations

import logging
import signal
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError
from rich.prompt import Confirm

from smsync import __version__
from smsync.clients import MiraklClient, ShopifyClient
from smsync.config import (
    ROUTINE_NAMES,
    SmsyncConfig,
    ensure_config_exists,
    find_credential_problems,
    generate_default_config,
    get_config_path,
    load_config,
    validate_config_file,
)
from smsync.errors import ConfigurationError
from smsync.logger import setup_logging
from smsync.output import create_console
from smsync.scheduler import SyncScheduler
from smsync.sync import CheckpointStore, SyncEngine

logger = logging.getLogger(__name__)

console = create_console()


def _load_config_or_exit(config_path: Optional[Path]) -> SmsyncConfig:
    """Load configuration, exiting with status 1 on any problem."""
    try:
        return load_config(config_path)
    except FileNotFoundError as e:
        console.print_error(str(e))
        sys.exit(1)
    except ValidationError as e:
        console.print_error(f"Invalid configuration:\n{e}")
        sys.exit(1)


def _require_credentials(config: SmsyncConfig) -> None:
    """
    Raise ConfigurationError if credentials are missing or placeholders.
    """
    problems = find_credential_problems(config)
    if problems:
        raise ConfigurationError(
            "Please set your API credentials (config file or environment variables): " + "; ".join(problems)
        )


def _prepare(ctx: click.Context, verbose: bool = False) -> SmsyncConfig:
    """Load config, set up logging and validate credentials; fatal on failure."""
    config = _load_config_or_exit(ctx.obj.get("config_path"))
    setup_logging(
        "DEBUG" if verbose else config.output.log_level,
        log_file=config.output.log_file,
        colored=config.output.colored,
    )
    try:
        _require_credentials(config)
    except ConfigurationError as e:
        console.print_error(str(e))
        sys.exit(1)
    return config


@click.group()
@click.version_option(version=__version__, prog_name="smsync")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to config file (default: $SMSYNC_CONFIG or ~/.config/smsync/config.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path]) -> None:
    """SMSYNC - Shopify-Mirakl Sync.

    Keeps offers, stock, orders and tracking in step between a Shopify
    store and a Mirakl marketplace.

    \b
    offers:    Shopify products   -> Mirakl offers
    inventory: Shopify stock      -> Mirakl offers
    orders:    Mirakl orders      -> Shopify orders
    tracking:  Shopify shipments  -> Mirakl tracking
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command()
@click.argument("routines", nargs=-1, type=click.Choice(ROUTINE_NAMES))
@click.option("--dry-run", "-n", is_flag=True, help="Read and transform only; nothing is written")
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output")
@click.pass_context
def sync(ctx: click.Context, routines: tuple[str, ...], dry_run: bool, verbose: bool) -> None:
    """Run sync routines once.

    ROUTINES: routines to run (default: all enabled, in configured order)

    \b
    Examples:
        smsync sync                  # All enabled routines
        smsync sync orders tracking  # Only these two
        smsync sync offers -n -v     # Show the offer file without sending it
    """
    config = _prepare(ctx, verbose)
    out = create_console(verbose=verbose or config.output.verbose, colored=config.output.colored)

    store = CheckpointStore(Path(config.state.path))
    with ShopifyClient(config.shopify) as shopify, MiraklClient(config.mirakl) as mirakl:
        engine = SyncEngine(config, shopify, shopify, mirakl, store, dry_run=dry_run)
        report = engine.run(list(routines) or None)

    out.print_report(report, dry_run=dry_run)
    if not report.success:
        sys.exit(1)


@cli.command()
@click.option("--no-initial", is_flag=True, help="Skip the initial pass and only schedule")
@click.pass_context
def run(ctx: click.Context, no_initial: bool) -> None:
    """Run the initial pass, then sync on schedule until stopped."""
    config = _prepare(ctx)
    out = create_console(verbose=config.output.verbose, colored=config.output.colored)

    out.print_config_summary(
        str(ctx.obj.get("config_path") or get_config_path()),
        f"{config.shopify.store_name}.myshopify.com",
        config.mirakl.api_url,
        {name: config.get_schedule(name) or "-" for name in config.get_enabled_routines()},
    )
    logger.info("Started at %s", datetime.now().strftime("%Y-%m-%d %H:%M:%S"))

    store = CheckpointStore(Path(config.state.path))
    with ShopifyClient(config.shopify) as shopify, MiraklClient(config.mirakl) as mirakl:
        engine = SyncEngine(config, shopify, shopify, mirakl, store)
        scheduler = SyncScheduler(engine, config)

        if config.sync.run_on_start and not no_initial:
            out.print_info("Running initial sync")
            out.print_report(scheduler.run_initial_pass())

        if not config.sync.enabled:
            out.print_warning("Scheduled sync disabled (sync.enabled = false)")
            return

        scheduler.configure()

        def _shutdown(signum, frame) -> None:
            logger.info("Received signal %s, shutting down", signum)
            scheduler.stop()

        signal.signal(signal.SIGTERM, _shutdown)

        out.print_success("Integration is running. Press Ctrl+C to stop.")
        try:
            scheduler.start()
        except (KeyboardInterrupt, SystemExit):
            scheduler.stop()
        out.print_info("Integration stopped")


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print the raw checkpoint as JSON")
@click.option("--verbose", "-v", is_flag=True, help="List processed order ids")
@click.pass_context
def status(ctx: click.Context, as_json: bool, verbose: bool) -> None:
    """Show sync cursors and processed order count."""
    config = _load_config_or_exit(ctx.obj.get("config_path"))
    store = CheckpointStore(Path(config.state.path))

    if as_json:
        click.echo(store.export_json())
        return

    out = create_console(verbose=verbose, colored=config.output.colored)
    out.print_checkpoint(store.checkpoint, str(store.path))


@cli.command("reset-cursors")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def reset_cursors(ctx: click.Context, yes: bool) -> None:
    """Forget last-sync timestamps so the next pass fetches everything.

    Processed order ids are kept, so no order is created twice.
    """
    config = _load_config_or_exit(ctx.obj.get("config_path"))
    store = CheckpointStore(Path(config.state.path))

    if not yes and not Confirm.ask("Reset all sync cursors?", default=False):
        console.print_warning("Reset cancelled")
        return

    if not store.reset_cursors():
        console.print_error(f"Could not write {store.path}")
        sys.exit(1)
    console.print_success("Sync cursors reset")


@cli.group()
def config() -> None:
    """Manage the configuration file."""
    pass


@config.command("init")
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing file")
@click.pass_context
def config_init(ctx: click.Context, force: bool) -> None:
    """Write a default configuration file."""
    path = ctx.obj.get("config_path") or get_config_path()

    if path.exists() and force:
        path.write_text(generate_default_config(), encoding="utf-8")
        console.print_success(f"Configuration overwritten: {path}")
        return

    path, created = ensure_config_exists(path)
    if created:
        console.print_success(f"Configuration created: {path}")
    else:
        console.print_warning(f"Configuration already exists: {path} (use --force to overwrite)")


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show the effective configuration (secrets masked)."""
    import yaml

    config_obj = _load_config_or_exit(ctx.obj.get("config_path"))
    data = config_obj.model_dump(mode="json")
    for section, key in (("shopify", "access_token"), ("mirakl", "api_key")):
        value = data[section][key]
        data[section][key] = value[:4] + "…" if value and len(value) > 8 else "***"

    click.echo(yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True))


@config.command("validate")
@click.argument("file", type=click.Path(path_type=Path), required=False)
@click.pass_context
def config_validate(ctx: click.Context, file: Optional[Path]) -> None:
    """Validate a configuration file.

    FILE: file to check (default: the active config file)
    """
    path = file or ctx.obj.get("config_path") or get_config_path()
    valid, errors = validate_config_file(path)

    if not valid:
        console.print_error(f"{path} is invalid:")
        for error in errors:
            console.print(f"  • {error}")
        sys.exit(1)

    console.print_success(f"{path} is valid")


if __name__ == "__main__":
    cli()
