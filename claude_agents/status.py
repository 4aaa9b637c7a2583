"""Installation status and health checks, derived from the filesystem."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .config import CollectionRegistry, Directories
from .repositories import RepositorySync
from .symlinks import SymlinkManager

OK = "ok"
WARN = "warn"
FAIL = "fail"


@dataclass(frozen=True)
class ComponentStatus:
    key: str
    name: str
    installed: bool
    links: int
    broken: int


@dataclass(frozen=True)
class CheckResult:
    name: str
    status: str
    message: str


def component_status(registry: CollectionRegistry, symlinks: SymlinkManager) -> list[ComponentStatus]:
    statuses = []
    for c in registry:
        links = symlinks.component_links(c.key)
        broken = sum(1 for link in links if not link.exists())
        statuses.append(ComponentStatus(
            key=c.key, name=c.name, installed=bool(links), links=len(links), broken=broken,
        ))
    return statuses


def installed_components(registry: CollectionRegistry, symlinks: SymlinkManager) -> list[str]:
    return [s.key for s in component_status(registry, symlinks) if s.installed]


# ---------------------------------------------------------------------------
# Doctor
# ---------------------------------------------------------------------------


def _check_directory(label: str, path: Path) -> CheckResult:
    if not path.exists():
        return CheckResult(label, WARN, f"{path} does not exist yet (created on install)")
    if not path.is_dir():
        return CheckResult(label, FAIL, f"{path} exists but is not a directory")
    if not os.access(path, os.W_OK | os.X_OK):
        return CheckResult(label, FAIL, f"{path} is not writable")
    return CheckResult(label, OK, str(path))


def run_checks(registry: CollectionRegistry, directories: Directories,
               symlinks: SymlinkManager, repositories: RepositorySync) -> list[CheckResult]:
    checks: list[CheckResult] = []

    if repositories.git_available():
        checks.append(CheckResult("git", OK, "git is installed"))
    else:
        checks.append(CheckResult("git", FAIL, "git is required to clone upstream collections"))

    if repositories.gh_available():
        checks.append(CheckResult("gh", OK, "GitHub CLI is installed"))
    else:
        checks.append(CheckResult("gh", WARN, "GitHub CLI is recommended but not required"))

    checks.append(_check_directory("claude dir", directories.claude_dir))
    checks.append(_check_directory("agents dir", directories.agents_dir))
    checks.append(_check_directory("commands dir", directories.commands_dir))

    for c in registry:
        source = directories.source_for(c)
        label = f"source: {c.key}"
        if source.is_dir():
            checks.append(CheckResult(label, OK, str(source)))
        elif c.repository:
            checks.append(CheckResult(label, WARN, f"not cloned yet ({c.repository})"))
        else:
            checks.append(CheckResult(label, WARN, f"{source} is missing"))

    broken = symlinks.find_broken_symlinks()
    if broken:
        checks.append(CheckResult("symlinks", WARN,
                                  f"{len(broken)} broken symlink(s); run 'remove' or 'doctor --fix'"))
    else:
        checks.append(CheckResult("symlinks", OK, "no broken symlinks"))

    return checks
