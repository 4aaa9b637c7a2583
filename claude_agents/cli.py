"""Command line entry point for installing and removing agent collections."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from typing import Callable, Optional

from . import __version__
from .config import Collection, CollectionRegistry, Directories, default_registry, load_directories
from .errors import ClaudeAgentsError, ConfigurationError, UserCancelledError
from .installer import InstallResult, Installer
from .mappings import MappingBuilder
from .remover import RemoveResult, Remover
from .repositories import RepositorySync
from .status import FAIL, OK, WARN, component_status, installed_components, run_checks
from .symlinks import OperationResult, SymlinkManager
from .ui import TerminalUI, confirm, select_collections

# ---------------------------------------------------------------------------
# CLI setup
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="claude-agents",
        description="Install and remove Claude Code agent and command collections.",
    )
    parser.add_argument("--dry-run", action="store_true", help="Preview changes without writing")
    parser.add_argument("--verbose", action="store_true", help="Detailed output")
    parser.add_argument("--yes", action="store_true", help="Skip confirmation prompts")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("--claude-dir", metavar="DIR", help="Claude configuration directory (default ~/.claude)")
    parser.add_argument("--source-dir", metavar="DIR", help="Where upstream collections live (default ~/.claude-agents)")

    sub = parser.add_subparsers(dest="command")

    inst = sub.add_parser("install", help="Install one or more collections")
    inst.add_argument("--components", metavar="KEYS", help="Comma-separated collection keys (non-interactive)")
    inst.add_argument("--skip-update", action="store_true", help="Do not pull repositories that already exist")

    setup = sub.add_parser("setup", help="Install a single collection")
    setup.add_argument("collection", help="Collection key")
    setup.add_argument("--skip-update", action="store_true", help="Do not pull the repository if it exists")

    rm = sub.add_parser("remove", help="Remove installed collections")
    rm.add_argument("target", nargs="?", help="Collection key or 'all' (interactive when omitted)")

    sub.add_parser("status", help="Show installation status of all collections")

    doctor = sub.add_parser("doctor", help="Check system health and dependencies")
    doctor.add_argument("--fix", action="store_true", help="Remove broken symlinks")

    sub.add_parser("version", help="Show version information")
    return parser


@dataclass
class Context:
    ui: TerminalUI
    registry: CollectionRegistry
    directories: Directories
    symlinks: SymlinkManager
    mappings: MappingBuilder
    repositories: RepositorySync
    installer: Installer
    remover: Remover


def build_context(args: argparse.Namespace, registry: Optional[CollectionRegistry] = None) -> Context:
    ui = TerminalUI(verbose=args.verbose, color=False if args.no_color else None)
    registry = registry or default_registry()
    directories = load_directories(args.claude_dir, args.source_dir)
    symlinks = SymlinkManager(ui, directories, registry, dry_run=args.dry_run)
    mappings = MappingBuilder(registry, directories)
    repositories = RepositorySync(ui, directories, update=not getattr(args, "skip_update", False))
    return Context(
        ui=ui,
        registry=registry,
        directories=directories,
        symlinks=symlinks,
        mappings=mappings,
        repositories=repositories,
        installer=Installer(ui, registry, directories, symlinks, mappings, repositories),
        remover=Remover(ui, registry, directories, symlinks),
    )


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------


def _created(ctx: Context, op: OperationResult) -> int:
    return op.dry_run_count if ctx.symlinks.dry_run else op.created_links


def print_install_summary(ctx: Context, results: dict[str, InstallResult]) -> None:
    ctx.ui.section("Installation Summary")
    rows = []
    for key, r in results.items():
        name = ctx.registry.get(key).name if key in ctx.registry else key
        op = r.operation
        created = _created(ctx, op)
        rows.append([name, "Success" if r.success else "Failed", str(op.total_files),
                     str(created), str(op.skipped_files), str(op.error_count)])
    ctx.ui.table(["Component", "Status", "Files", "Created", "Skipped", "Errors"], rows)
    totals = [sum(_created(ctx, r.operation) for r in results.values()),
              sum(r.operation.skipped_files for r in results.values()),
              sum(r.operation.error_count for r in results.values())]
    dry = " (dry-run)" if ctx.symlinks.dry_run else ""
    print(f"\n  {totals[0]} created, {totals[1]} skipped, {totals[2]} failed.{dry}")


def print_removal_summary(ctx: Context, results: dict[str, RemoveResult]) -> None:
    ctx.ui.section("Removal Summary")
    rows = []
    for key, r in results.items():
        name = ctx.registry.get(key).name if key in ctx.registry else key
        rows.append([name, "Success" if r.success else "Failed",
                     str(r.removal.removed_count), str(r.removal.skipped_count),
                     str(r.removal.error_count)])
    ctx.ui.table(["Component", "Status", "Removed", "Skipped", "Errors"], rows)
    removed = sum(r.removal.removed_count for r in results.values())
    errors = sum(r.removal.error_count for r in results.values())
    dry = " (dry-run)" if ctx.symlinks.dry_run else ""
    print(f"\n  {removed} removed, {errors} failed.{dry}")


def _parse_keys(ctx: Context, raw: str) -> list[str]:
    keys = [k.strip() for k in raw.split(",") if k.strip()]
    for k in keys:
        ctx.registry.get(k)
    return keys


def _collections(ctx: Context, keys: list[str]) -> list[Collection]:
    return [ctx.registry.get(k) for k in keys]


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def cmd_install(args: argparse.Namespace, ctx: Context) -> int:
    if args.components:
        keys = _parse_keys(ctx, args.components)
    elif args.yes:
        keys = ctx.registry.keys()
    else:
        ctx.ui.title("Claude Code Agent Installer")
        existing = installed_components(ctx.registry, ctx.symlinks)
        if existing:
            ctx.ui.warn("Existing agent installations detected.")
            if confirm("  Remove existing installations first?", default=False, c=ctx.ui.c):
                to_remove = select_collections("Select collections to remove:",
                                               _collections(ctx, existing), installed=existing)
                if to_remove:
                    print_removal_summary(ctx, ctx.remover.remove_components(to_remove))
        keys = select_collections("Select collections to install:", list(ctx.registry),
                                  preselected=ctx.registry.keys(), installed=existing)
        if not keys:
            ctx.ui.info("No components selected. Exiting.")
            return 0
        ctx.ui.section("Installation Plan")
        for k in keys:
            c = ctx.registry.get(k)
            ctx.ui.info(f"• {c.name} - {c.description}")
        if not confirm("  Proceed with installation?", c=ctx.ui.c):
            ctx.ui.info("Aborted.")
            return 0

    return _run_install(ctx, keys)


def cmd_setup(args: argparse.Namespace, ctx: Context) -> int:
    ctx.registry.get(args.collection)
    return _run_install(ctx, [args.collection])


def _run_install(ctx: Context, keys: list[str]) -> int:
    results = ctx.installer.install_components(keys)
    if not results:
        return 0
    print_install_summary(ctx, results)
    if all(r.success for r in results.values()):
        ctx.ui.success("Installation completed!")
        return 0
    return 1


def cmd_remove(args: argparse.Namespace, ctx: Context) -> int:
    installed = installed_components(ctx.registry, ctx.symlinks)
    if args.target == "all":
        if not installed:
            ctx.ui.info("No Claude Code agents are currently installed.")
            return 0
        ctx.ui.warn("This will remove ALL installed agent collections.")
        if not args.yes:
            if not confirm("  Are you absolutely sure you want to remove everything?", default=False, c=ctx.ui.c):
                ctx.ui.info("Aborted.")
                return 0
            if not confirm("  All agent symlinks will be deleted. Continue?", default=False, c=ctx.ui.c):
                ctx.ui.info("Aborted.")
                return 0
        keys = installed
    elif args.target:
        ctx.registry.get(args.target)
        keys = [args.target]
        if not args.yes and not confirm(f"  Remove {ctx.registry.get(args.target).name}?", c=ctx.ui.c):
            ctx.ui.info("Aborted.")
            return 0
    else:
        if not installed:
            ctx.ui.info("No Claude Code agents are currently installed.")
            return 0
        keys = select_collections("Select collections to remove:", _collections(ctx, installed),
                                  preselected=installed if args.yes else None,
                                  installed=installed, auto_accept=args.yes)
        if not keys:
            ctx.ui.info("No components selected for removal.")
            return 0

    results = ctx.remover.remove_components(keys)
    if not results:
        return 0
    print_removal_summary(ctx, results)
    if all(r.success for r in results.values()):
        ctx.ui.success("Removal completed!")
        return 0
    return 1


def cmd_status(args: argparse.Namespace, ctx: Context) -> int:
    ctx.ui.title("Claude Agents Status")
    rows = []
    for s in component_status(ctx.registry, ctx.symlinks):
        label = "Installed" if s.installed else "Not installed"
        broken = str(s.broken) if s.broken else "-"
        rows.append([s.name, label, str(s.links), broken])
    ctx.ui.table(["Component", "Status", "Links", "Broken"], rows)
    print(f"\n  Agents:   {ctx.directories.agents_dir}")
    print(f"  Commands: {ctx.directories.commands_dir}")
    print(f"  Sources:  {ctx.directories.source_dir}")
    print()
    return 0


def cmd_doctor(args: argparse.Namespace, ctx: Context) -> int:
    ctx.ui.title("Claude Agents Doctor")
    checks = run_checks(ctx.registry, ctx.directories, ctx.symlinks, ctx.repositories)
    c = ctx.ui.c
    colors = {OK: c.GREEN, WARN: c.YELLOW, FAIL: c.RED}
    for check in checks:
        print(f"  {colors[check.status]}{check.status.upper():5s}{c.RESET} {check.name:28s} {check.message}")

    if args.fix:
        ctx.ui.section("Fixing")
        removed = ctx.symlinks.cleanup_broken_symlinks()
        if not removed:
            ctx.ui.info("Nothing to fix.")
    print()
    return 1 if any(check.status == FAIL for check in checks) else 0


def cmd_version(args: argparse.Namespace, ctx: Context) -> int:
    print(f"Claude Agents CLI v{__version__}")
    print("Manage Claude Code agent and command collections")
    print()
    print("Collections:")
    for c in ctx.registry:
        print(f"  • {c.key:20s} {c.name} - {c.description}")
    return 0


COMMANDS: dict[str, Callable[[argparse.Namespace, Context], int]] = {
    "install": cmd_install,
    "setup": cmd_setup,
    "remove": cmd_remove,
    "status": cmd_status,
    "doctor": cmd_doctor,
    "version": cmd_version,
}


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    ctx: Optional[Context] = None
    try:
        ctx = build_context(args)
        if args.dry_run:
            ctx.ui.info(f"{ctx.ui.c.MAGENTA}[dry-run]{ctx.ui.c.RESET} No changes will be written.")
        code = COMMANDS[args.command](args, ctx)
    except UserCancelledError:
        print("  Operation cancelled.")
        sys.exit(0)
    except KeyboardInterrupt:
        print("\n  Interrupted.", file=sys.stderr)
        sys.exit(130)
    except ConfigurationError as e:
        _report(ctx, f"Validation failed: {e}")
        sys.exit(1)
    except ClaudeAgentsError as e:
        _report(ctx, f"{type(e).__name__}: {e}")
        sys.exit(1)

    if code:
        sys.exit(code)


def _report(ctx: Optional[Context], msg: str) -> None:
    if ctx is not None:
        ctx.ui.error(msg)
    else:
        print(f"Error: {msg}", file=sys.stderr)


if __name__ == "__main__":
    main()
