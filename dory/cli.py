"""Command-line interface for dory.

Usage:
    dory up
    dory down
    dory status
    dory config-file [--upgrade]
"""

from pathlib import Path
from typing import Optional

import typer

from dory import __version__
from dory.core.config import Config
from dory.core.exceptions import DoryError, UnsupportedPlatformError
from dory.core.logger import logger, setup_logging
from dory.resolv import ResolvBase, get_resolver
from dory.utils.platform_utils import PlatformUtils

app = typer.Typer(
    name="dory",
    help="dory - resolve your local development domains through a local nameserver",
    add_completion=False,
)


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to the settings file"),
):
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config


def _init_core(ctx: typer.Context) -> Config:
    """Set up logging and bring a legacy settings file up to date."""
    config = Config(ctx.obj.get("config_path") if ctx.obj else None)
    setup_logging(config.debug())

    try:
        if config.upgrade_settings_file():
            typer.echo(f"⬆️  Upgraded settings file {config.config_path}")
    except DoryError as e:
        typer.echo(f"❌ Error: {e}", err=True)
        raise typer.Exit(1)
    return config


def _load_settings(config: Config) -> dict:
    try:
        return config.settings()
    except DoryError as e:
        typer.echo(f"❌ Error: {e}", err=True)
        raise typer.Exit(1)


def _get_resolver(use_sudo: bool = False) -> ResolvBase:
    try:
        return get_resolver(use_sudo=use_sudo)
    except UnsupportedPlatformError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)


def _with_sudo_retry(action: str, settings: dict) -> bool:
    """Run configure/clean, offering one sudo retry if it fails."""
    resolver = _get_resolver()
    if getattr(resolver, action)(settings):
        return True

    logger.debug(f"resolver {action} failed without sudo")
    if not typer.confirm("Writing the resolver configuration needs root. Retry with sudo?", default=True):
        return False
    return getattr(_get_resolver(use_sudo=True), action)(settings)


@app.command()
def version():
    """Show the dory version."""
    typer.echo(f"dory v{__version__}")


@app.command()
def up(ctx: typer.Context):
    """Point the host resolver at the local nameserver."""
    config = _init_core(ctx)
    settings = _load_settings(config)

    if not settings["dory"]["resolv"].get("enabled", True):
        typer.echo("ℹ️  resolv is disabled in the settings, nothing to do")
        return

    typer.echo("🔄 Configuring resolver...")
    if _with_sudo_retry("configure", settings):
        typer.echo("✅ Resolver configured")
    else:
        typer.echo("❌ Could not configure the resolver", err=True)
        raise typer.Exit(1)


@app.command()
def down(ctx: typer.Context):
    """Remove the resolver entries dory added."""
    config = _init_core(ctx)
    settings = _load_settings(config)

    typer.echo("🔄 Cleaning resolver...")
    if _with_sudo_retry("clean", settings):
        typer.echo("✅ Resolver cleaned")
    else:
        typer.echo("❌ Could not clean the resolver", err=True)
        raise typer.Exit(1)


@app.command()
def status(ctx: typer.Context):
    """Show platform, settings and resolver state."""
    config = _init_core(ctx)
    settings = _load_settings(config)
    resolver = _get_resolver()

    typer.echo("📊 dory status:")
    typer.echo(f"   Platform: {PlatformUtils.get_platform().value}")
    typer.echo(f"   Settings: {config.config_path}")
    typer.echo(f"   Debug: {config.debug()}")
    typer.echo(f"   Domains: {', '.join(d['domain'] for d in settings['dory']['dnsmasq']['domains'])}")
    if resolver.has_our_nameserver(settings):
        typer.echo("   Resolver: ✅ Configured")
    else:
        typer.echo("   Resolver: ❌ Not configured")


@app.command("config-file")
def config_file(
    ctx: typer.Context,
    upgrade: bool = typer.Option(False, "--upgrade", "-u", help="Upgrade the existing settings file in place"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite without asking"),
):
    """Write a default settings file, or upgrade the existing one."""
    config = Config(ctx.obj.get("config_path") if ctx.obj else None)

    if upgrade:
        try:
            upgraded = config.upgrade_settings_file()
        except DoryError as e:
            typer.echo(f"❌ Error: {e}", err=True)
            raise typer.Exit(1)
        if upgraded:
            typer.echo(f"✅ Upgraded {config.config_path}")
        else:
            typer.echo(f"ℹ️  {config.config_path} is already up to date")
        return

    if config.config_path.exists() and not force:
        if not typer.confirm(f"{config.config_path} already exists. Overwrite it with the defaults?"):
            typer.echo("ℹ️  Left the settings file unchanged")
            return

    if config.write_default_settings_file():
        typer.echo(f"✅ Wrote default settings to {config.config_path}")
    else:
        typer.echo(f"❌ Could not write {config.config_path}", err=True)
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
