#!/usr/bin/env python3
"""MCP server exposing claude-agents operations as structured tools."""

from __future__ import annotations

import argparse
import io
import sys
from contextlib import contextmanager
from dataclasses import asdict
from typing import Any, Callable, Optional

from claude_agents import ClaudeAgentsError
from claude_agents.cli import Context, build_context
from claude_agents.status import FAIL, component_status, run_checks
from mcp.server.fastmcp import FastMCP

mcp = FastMCP(
    "claude-agents",
    instructions="Install, remove and inspect Claude Code agent and command collections.",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _mock_args(**kwargs: Any) -> argparse.Namespace:
    defaults = {
        "dry_run": False,
        "verbose": False,
        "yes": True,
        "no_color": True,
        "claude_dir": None,
        "source_dir": None,
        "skip_update": False,
    }
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


@contextmanager
def _capture_output():
    old_out, old_err = sys.stdout, sys.stderr
    sys.stdout = buf_out = io.StringIO()
    sys.stderr = buf_err = io.StringIO()
    try:
        yield buf_out, buf_err
    finally:
        sys.stdout, sys.stderr = old_out, old_err


def _run(fn: Callable[[Context], dict[str, Any]], args: argparse.Namespace) -> dict[str, Any]:
    with _capture_output() as (out, err):
        try:
            ctx = build_context(args)
            payload = fn(ctx)
        except ClaudeAgentsError as e:
            return {
                "success": False,
                "error": str(e),
                "output": out.getvalue().strip(),
            }
    payload.setdefault("success", True)
    payload["output"] = out.getvalue().strip()
    errors = err.getvalue().strip()
    if errors:
        payload["errors"] = errors
    return payload


def _keys(ctx: Context, components: Optional[list[str]]) -> list[str]:
    if not components:
        return ctx.registry.keys()
    for key in components:
        ctx.registry.get(key)
    return list(components)


# ---------------------------------------------------------------------------
# Read-only tools
# ---------------------------------------------------------------------------


@mcp.tool()
def agents_status() -> dict[str, Any]:
    """Return which collections are installed and how many links each has."""
    def _status(ctx: Context) -> dict[str, Any]:
        return {
            "claude_dir": str(ctx.directories.claude_dir),
            "components": [asdict(s) for s in component_status(ctx.registry, ctx.symlinks)],
        }
    return _run(_status, _mock_args())


@mcp.tool()
def agents_doctor() -> dict[str, Any]:
    """Run the health checks and return them as structured results."""
    def _doctor(ctx: Context) -> dict[str, Any]:
        checks = run_checks(ctx.registry, ctx.directories, ctx.symlinks, ctx.repositories)
        return {
            "success": not any(c.status == FAIL for c in checks),
            "checks": [asdict(c) for c in checks],
        }
    return _run(_doctor, _mock_args())


# ---------------------------------------------------------------------------
# Mutating tools
# ---------------------------------------------------------------------------


@mcp.tool()
def agents_install(components: Optional[list[str]] = None, dry_run: bool = False,
                   skip_update: bool = False) -> dict[str, Any]:
    """Install collections as symlinks into the Claude configuration directory.

    Args:
        components: Collection keys (e.g. ["dlabs", "awesome"]). All when omitted.
        dry_run: Report what would be linked without touching the filesystem.
        skip_update: Do not pull repositories that are already cloned.
    """
    def _install(ctx: Context) -> dict[str, Any]:
        results = ctx.installer.install_components(_keys(ctx, components))
        return {
            "success": all(r.success for r in results.values()),
            "results": {
                key: {
                    "success": r.success,
                    "error": r.error,
                    "total_files": r.operation.total_files,
                    "created_links": r.operation.created_links,
                    "skipped_files": r.operation.skipped_files,
                    "error_count": r.operation.error_count,
                    "dry_run_count": r.operation.dry_run_count,
                }
                for key, r in results.items()
            },
        }
    return _run(_install, _mock_args(dry_run=dry_run, skip_update=skip_update))


@mcp.tool()
def agents_remove(components: Optional[list[str]] = None, dry_run: bool = False) -> dict[str, Any]:
    """Remove the symlinks of the given collections (installed ones when omitted).

    Args:
        components: Collection keys to remove.
        dry_run: Report what would be removed without touching the filesystem.
    """
    def _remove(ctx: Context) -> dict[str, Any]:
        keys = list(components) if components else ctx.remover.installed()
        _keys(ctx, keys)
        results = ctx.remover.remove_components(keys)
        return {
            "success": all(r.success for r in results.values()),
            "results": {
                key: {
                    "success": r.success,
                    "error": r.error,
                    "removed_count": r.removal.removed_count,
                    "skipped_count": r.removal.skipped_count,
                    "error_count": r.removal.error_count,
                }
                for key, r in results.items()
            },
        }
    return _run(_remove, _mock_args(dry_run=dry_run))


@mcp.tool()
def agents_cleanup_broken(dry_run: bool = False) -> dict[str, Any]:
    """Remove symlinks in the managed directories whose target no longer exists.

    Args:
        dry_run: Count broken links without removing them.
    """
    def _cleanup(ctx: Context) -> dict[str, Any]:
        return {"removed": ctx.symlinks.cleanup_broken_symlinks()}
    return _run(_cleanup, _mock_args(dry_run=dry_run))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    mcp.run(transport="stdio")
