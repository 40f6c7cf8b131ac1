"""CLI interface for texsync."""

import logging
from pathlib import Path
from typing import Any, Optional

import click

from .api import GitHubClient
from .cli_progress import SyncProgressDisplay
from .config import config
from .exceptions import (
    MissingTargetFolderError,
    SyncCancelledError,
    TexsyncConfigError,
    TexsyncError,
)
from .output import OutputFormatter
from .sync import StateManager, SyncEngine, SyncPlan
from .utils import format_size

logger = logging.getLogger(__name__)


def _make_client(ctx: Any) -> GitHubClient:
    return GitHubClient(token=ctx.obj.get("token"))


def _resolve_textures_path(
    path: Optional[str], state_manager: StateManager, out: OutputFormatter
) -> Optional[Path]:
    """Pick the textures directory from the argument or the saved state."""
    if path:
        return Path(path).expanduser()
    saved = state_manager.load().textures_path
    if saved:
        return Path(saved)
    out.error(
        "No textures directory given. Pass PATH or run 'texsync set-path PATH'."
    )
    return None


def _report_error(out: OutputFormatter, e: TexsyncError) -> None:
    out.error(str(e))
    if isinstance(e, MissingTargetFolderError):
        out.warning(
            f"Point texsync at the directory that contains {e.path.name} "
            f"with 'texsync set-path PATH'."
        )


def _display_plan(out: OutputFormatter, plan: SyncPlan, list_changes: bool) -> None:
    out.info("Sync plan:")
    out.info(f"  ↓ Download: {len(plan.to_download)} file(s)")
    out.info(f"  ✗ Delete: {len(plan.to_delete)} file(s)")
    out.info(f"  = Up to date: {plan.up_to_date} file(s)")
    if plan.skipped:
        out.info(f"  - Skipped: {plan.skipped} file(s)")

    if list_changes:
        for item in plan.to_download:
            if item.source != item.path:
                out.info(f"    ↓ {item.path} (from {item.source})")
            else:
                out.info(f"    ↓ {item.path}")
        for path in plan.to_delete:
            out.info(f"    ✗ {path}")
    out.print("")


@click.group()
@click.option(
    "--token",
    "-t",
    envvar="TEXSYNC_GITHUB_TOKEN",
    help="GitHub token (optional, raises the API rate limit)",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(package_name="texsync")
@click.pass_context
def main(
    ctx: Any, token: Optional[str], quiet: bool, json: bool, verbose: bool
) -> None:
    """texsync - Keep a texture pack folder in sync with its GitHub repository."""
    ctx.ensure_object(dict)
    ctx.obj["token"] = token
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("texsync").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command("set-path")
@click.argument("path", type=click.Path(exists=True, file_okay=False))
@click.pass_context
def set_path(ctx: Any, path: str) -> None:
    """Remember the textures directory (the parent of the game folder).

    PATH: Directory containing the target folder
    """
    out: OutputFormatter = ctx.obj["out"]
    textures_path = Path(path).expanduser().resolve()

    target = textures_path / config.target_folder
    if not target.is_dir():
        out.warning(f"{config.target_folder} not found in {textures_path}")

    StateManager().set_textures_path(textures_path)
    if out.json_output:
        out.output_json({"textures_path": str(textures_path)})
    else:
        out.success(f"✓ Textures directory set to {textures_path}")


@main.command("config")
@click.option(
    "--set",
    "set_value",
    nargs=2,
    metavar="KEY VALUE",
    help="Store a setting in the config file",
)
@click.pass_context
def config_cmd(ctx: Any, set_value: Optional[tuple[str, str]]) -> None:
    """Show the resolved configuration or store a setting."""
    out: OutputFormatter = ctx.obj["out"]

    if set_value:
        key, value = set_value
        try:
            config.save_value(key, value)
        except (TexsyncConfigError, OSError) as e:
            out.error(str(e))
            ctx.exit(1)
        out.success(f"✓ Saved {key} to {config.get_config_path()}")
        return

    try:
        values = config.as_dict()
    except TexsyncConfigError as e:
        out.error(str(e))
        ctx.exit(1)

    if out.json_output:
        out.output_json(values)
        return
    out.print_summary(
        "Configuration", [(key, str(value)) for key, value in values.items()]
    )


@main.command()
@click.argument(
    "path", type=click.Path(file_okay=False), required=False, default=None
)
@click.option("--list", "list_changes", is_flag=True, help="List every change")
@click.pass_context
def status(ctx: Any, path: Optional[str], list_changes: bool) -> None:
    """Check whether the local folder matches the repository.

    PATH: Textures directory (defaults to the saved one)
    """
    out: OutputFormatter = ctx.obj["out"]
    state_manager = StateManager()
    textures_path = _resolve_textures_path(path, state_manager, out)
    if textures_path is None:
        ctx.exit(1)
    state = state_manager.load()

    try:
        with _make_client(ctx) as client:
            engine = SyncEngine(client)
            plan = engine.plan_only(textures_path)
    except TexsyncError as e:
        _report_error(out, e)
        ctx.exit(1)

    if out.json_output:
        out.output_json(
            {
                "latest_revision": plan.revision,
                "last_sync_revision": state.last_sync_revision,
                "files_to_download": len(plan.to_download),
                "files_to_delete": len(plan.to_delete),
                "files_up_to_date": plan.up_to_date,
                "files_skipped": plan.skipped,
                "is_up_to_date": plan.is_up_to_date,
            }
        )
        return

    out.info(f"Latest revision: {plan.revision}")
    if state.last_sync_revision:
        out.info(f"Last synced revision: {state.last_sync_revision}")
    _display_plan(out, plan, list_changes)

    if plan.is_up_to_date:
        out.success("✓ Everything is up to date")
    else:
        out.warning(f"{plan.total} change(s) pending - run 'texsync sync'")


@main.command()
@click.argument(
    "path", type=click.Path(file_okay=False), required=False, default=None
)
@click.option(
    "--dry-run", is_flag=True, help="Show what would change without changing it"
)
@click.option(
    "--workers",
    "-j",
    type=click.IntRange(1, 32),
    default=1,
    help="Number of parallel downloads (default: 1)",
)
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.option("--list", "list_changes", is_flag=True, help="List every change")
@click.option("--no-progress", is_flag=True, help="Disable progress bars")
@click.pass_context
def sync(
    ctx: Any,
    path: Optional[str],
    dry_run: bool,
    workers: int,
    yes: bool,
    list_changes: bool,
    no_progress: bool,
) -> None:
    """Download new and changed files and delete removed ones.

    Files under user-customs are never touched. Disabled files (name
    starting with '-') stay disabled and are updated in place.

    PATH: Textures directory (defaults to the saved one)
    """
    out: OutputFormatter = ctx.obj["out"]
    state_manager = StateManager()
    textures_path = _resolve_textures_path(path, state_manager, out)
    if textures_path is None:
        ctx.exit(1)

    client = _make_client(ctx)
    engine = SyncEngine(client, max_workers=workers)
    try:
        out.info(f"Syncing: {textures_path / config.target_folder}")
        if dry_run:
            out.info("Dry run: No changes will be made")
        out.print("")

        plan = engine.plan_only(textures_path)
        if out.json_output and dry_run:
            out.output_json(
                {
                    "revision": plan.revision,
                    "download": plan.download_paths,
                    "delete": list(plan.to_delete),
                    "skipped": plan.skipped,
                    "up_to_date": plan.up_to_date,
                }
            )
            return
        _display_plan(out, plan, list_changes or dry_run)

        if dry_run:
            out.warning("Dry run mode - no files were changed.")
            return

        if plan.is_up_to_date:
            state_manager.record_sync(plan.revision)
            out.success("No changes needed - everything is in sync!")
            return

        if not yes and not out.json_output:
            if not click.confirm(f"Apply {plan.total} change(s)?", default=True):
                out.warning("Sync cancelled.")
                return

        if no_progress or out.quiet or out.json_output:
            result = engine.execute(plan, textures_path)
        else:
            with SyncProgressDisplay() as display:
                engine.tracker = display.create_tracker()
                result = engine.execute(plan, textures_path)

        state_manager.record_sync(result.new_revision)
    except KeyboardInterrupt:
        engine.cancel_event.set()
        out.error("Sync interrupted")
        ctx.exit(130)
    except SyncCancelledError as e:
        out.error(str(e))
        ctx.exit(130)
    except TexsyncError as e:
        _report_error(out, e)
        ctx.exit(1)
    finally:
        client.close()

    if out.json_output:
        out.output_json(result.to_dict())
        return

    downloaded_size = format_size(result.bytes_downloaded)
    out.print_summary(
        "Sync Complete",
        [
            ("Downloaded", f"{result.downloaded} ({downloaded_size})"),
            ("Deleted", str(result.deleted)),
            ("Skipped", str(result.skipped)),
            ("Revision", result.new_revision),
        ],
    )


if __name__ == "__main__":
    main()
