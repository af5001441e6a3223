"""Click-based CLI for bmsync - platform customization sync."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click
import yaml
from pydantic import ValidationError

from bmsync import __version__
from bmsync.config import (
    BmsyncConfig,
    InstanceConfig,
    ensure_config_exists,
    get_config_path,
    load_config,
    validate_config_file,
)
from bmsync.exceptions import ProjectError, PullFetchError, RemoteError
from bmsync.logger import configure_logging
from bmsync.output import Console, create_console
from bmsync.project import init_project, is_valid_project, read_project_config, touch_project_config
from bmsync.remote import HttpRemote
from bmsync.sync import HashCache, PullReconciler, PushReconciler
from bmsync.sync.pull import PULL_CATEGORIES

console = Console()

project_dir_option = click.option(
    "--dir",
    "-d",
    "project_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Project directory",
)
alias_option = click.option("--alias", "-a", default=None, help="Instance alias from the configuration")
verbose_option = click.option("--verbose", "-v", is_flag=True, help="Show detailed output")


@click.group()
@click.version_option(version=__version__, prog_name="bmsync")
def cli() -> None:
    """bmsync - sync platform customizations with a local project.

    \b
    Pull:  remote -> src/ (only files whose content changed are written)
    Push:  src/   -> remote (only files changed since the last sync)
    """
    pass


def _load_config_or_exit() -> BmsyncConfig:
    try:
        return load_config()
    except FileNotFoundError as e:
        console.print_error(str(e))
        sys.exit(1)
    except (yaml.YAMLError, ValidationError) as e:
        console.print_error(f"Invalid configuration: {e}")
        sys.exit(1)


def _setup(verbose: bool) -> tuple[BmsyncConfig, Console]:
    """Load configuration, configure logging and create the output console."""
    config = _load_config_or_exit()
    verbose = verbose or config.output.verbose
    configure_logging(verbose=verbose, log_file=config.output.log_file)
    return config, create_console(verbose=verbose, colored=config.output.colored)


def _resolve_alias(config: BmsyncConfig, alias: Optional[str], project_dir: Path) -> str:
    """Alias from the option, else from the project configuration, else the default."""
    if alias:
        return alias
    try:
        project_config = read_project_config(project_dir)
    except ProjectError:
        project_config = None
    if project_config is not None and project_config.instance.alias in config.instances:
        return project_config.instance.alias
    return config.default_alias


def _instance_or_exit(config: BmsyncConfig, alias: str, out: Console) -> InstanceConfig:
    instance = config.get_instance(alias)
    if instance is None:
        out.print_error(f'No instance configured for alias "{alias}"')
        out.print("[dim]Add it under 'instances' in the configuration file.[/dim]")
        sys.exit(1)
    if instance.resolve_api_key() is None:
        out.print_error(f'No API key for alias "{alias}" (set api_key or $BMSYNC_API_KEY)')
        sys.exit(1)
    return instance


def _open_remote(config: BmsyncConfig, instance: InstanceConfig) -> HttpRemote:
    return HttpRemote(
        instance.url,
        instance.resolve_api_key() or "",
        timeout=instance.timeout,
        request_delay_ms=instance.request_delay_ms,
        push_endpoints=config.push_endpoints,
    )


def _connection_hint(error: RemoteError) -> Optional[str]:
    if error.status in (401, 403):
        return "Check that the API key is valid and has the required permissions."
    if error.status == 404:
        return "Endpoint not found. Check the instance URL."
    return None


@cli.command()
@project_dir_option
@alias_option
@click.option(
    "--only",
    "-o",
    multiple=True,
    type=click.Choice(list(PULL_CATEGORIES)),
    help="Pull only these categories (repeatable)",
)
@click.option("--init", "reinit", is_flag=True, help="(Re)initialize the project structure")
@verbose_option
def pull(project_dir: Path, alias: Optional[str], only: tuple[str, ...], reinit: bool, verbose: bool) -> None:
    """Pull customizations from the platform into the project.

    Files whose content did not change since the last sync are not rewritten.
    """
    config, out = _setup(verbose)
    project_dir = project_dir.resolve()
    alias = _resolve_alias(config, alias, project_dir)
    instance = _instance_or_exit(config, alias, out)

    out.print_info(f"Instance: {instance.url} ({alias})")
    out.print(f"[dim]Project: {project_dir}[/dim]")

    with _open_remote(config, instance) as remote:
        try:
            remote.ping()
        except RemoteError as e:
            out.print_error(f"Connection test failed: {e}")
            hint = _connection_hint(e)
            if hint:
                out.print(f"[dim]{hint}[/dim]")
            sys.exit(1)

        if reinit or not is_valid_project(project_dir):
            init_project(
                project_dir,
                name=project_dir.name,
                instance_url=instance.url,
                alias=alias,
                description=f"Customizations for {instance.url}",
            )
            out.print_success("✓ Project structure initialized")

        reconciler = PullReconciler(project_dir, remote)
        try:
            result = reconciler.run(only=list(only) or None)
        except PullFetchError as e:
            if e.partial_result is not None and e.partial_result.categories:
                out.print_pull_result(e.partial_result)
            out.print_error(f"Pull failed: {e}")
            sys.exit(1)

    try:
        touch_project_config(project_dir, pulled=True)
    except ProjectError as e:
        out.print_warning(f"Failed to update project timestamp: {e}")

    out.print_pull_result(result)
    if not result.success:
        sys.exit(1)


@cli.command()
@project_dir_option
@alias_option
@click.option("--all", "all_files", is_flag=True, help="Push every file, not only changed ones")
@verbose_option
def push(project_dir: Path, alias: Optional[str], all_files: bool, verbose: bool) -> None:
    """Push local changes to the platform.

    By default only files that changed since the last pull or push are sent.
    """
    config, out = _setup(verbose)
    project_dir = project_dir.resolve()
    alias = _resolve_alias(config, alias, project_dir)
    instance = _instance_or_exit(config, alias, out)

    with _open_remote(config, instance) as remote:
        result = PushReconciler(project_dir, remote).run(all_files=all_files)

    out.print_push_result(result)

    if result.success and not result.nothing_to_do:
        try:
            touch_project_config(project_dir, pushed=True)
        except ProjectError as e:
            out.print_warning(f"Failed to update project timestamp: {e}")

    if not result.success:
        sys.exit(1)


@cli.command()
@project_dir_option
@verbose_option
def status(project_dir: Path, verbose: bool) -> None:
    """Show local changes since the last pull or push."""
    configure_logging(verbose=verbose)
    out = create_console(verbose=verbose)
    project_dir = project_dir.resolve()

    if not is_valid_project(project_dir):
        out.print_error(f"Not a bmsync project: {project_dir}")
        out.print("[dim]Run 'bmsync pull' to create one.[/dim]")
        sys.exit(1)

    cache = HashCache()
    report = cache.get_changes(project_dir)
    out.print_changes(report, total_tracked=cache.stats().total_files)


@cli.command("clear-cache")
@project_dir_option
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def clear_cache(project_dir: Path, yes: bool) -> None:
    """Clear the hash cache of a project.

    The next pull rewrites every file and the next push sends every file.
    """
    configure_logging()
    project_dir = project_dir.resolve()

    if not is_valid_project(project_dir):
        console.print_error(f"Not a bmsync project: {project_dir}")
        sys.exit(1)

    if not yes and not click.confirm("Clear the hash cache?", default=False):
        console.print("[dim]Aborted[/dim]")
        return

    cache = HashCache()
    cache.initialize(project_dir)
    before = cache.stats()
    cache.clear()
    console.print_cache_cleared(before)


@cli.command("test")
@alias_option
@verbose_option
def test_connection(alias: Optional[str], verbose: bool) -> None:
    """Test connection and authentication for an instance."""
    config, out = _setup(verbose)
    alias = alias or config.default_alias
    instance = _instance_or_exit(config, alias, out)

    with _open_remote(config, instance) as remote:
        try:
            remote.ping()
        except RemoteError as e:
            out.print_error(f"Connection failed: {e}")
            hint = _connection_hint(e)
            if hint:
                out.print(f"[dim]{hint}[/dim]")
            sys.exit(1)

    out.print_success(f"✓ Connected to {instance.url} ({alias})")


# ============================================================================
# Configuration Commands
# ============================================================================


@cli.group()
def config() -> None:
    """Manage the bmsync configuration file.

    \b
    Location: ~/.config/bmsync/config.yaml
    Override: $BMSYNC_CONFIG
    """
    pass


@config.command("init")
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing configuration")
def config_init(force: bool) -> None:
    """Create a default configuration file."""
    config_path = get_config_path()
    if force and config_path.exists():
        config_path.unlink()

    path, created = ensure_config_exists(config_path)
    if created:
        console.print_success(f"✓ Created configuration: {path}")
    else:
        console.print_warning(f"Configuration already exists: {path} (use --force to overwrite)")


@config.command("show")
def config_show() -> None:
    """Show the configured instances."""
    config = _load_config_or_exit()
    console.print_config_summary(
        str(get_config_path()),
        {alias: instance.url for alias, instance in config.instances.items()},
        config.default_alias,
    )
    if config.push_endpoints:
        for kind, endpoint in config.push_endpoints.items():
            console.print(f"  [dim]push {kind}: {endpoint}[/dim]")


@config.command("validate")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path), required=False)
def config_validate(file: Optional[Path]) -> None:
    """Validate a configuration file (default: the active one)."""
    is_valid, errors = validate_config_file(file)
    if is_valid:
        console.print_success("✓ Configuration is valid")
        return

    console.print_error("Configuration is invalid")
    for error in errors:
        console.print(f"  [red]•[/red] {error}")
    sys.exit(1)


if __name__ == "__main__":
    cli()
