"""Terminal presentation: colours, narration, summaries and prompts."""

from __future__ import annotations

import os
import sys
from typing import Any, Iterable, Optional, Protocol, Sequence, TextIO

from .config import Collection
from .errors import UserCancelledError

try:
    import curses

    _HAS_CURSES = True
except ImportError:
    _HAS_CURSES = False

# ---------------------------------------------------------------------------
# Terminal colors (respects NO_COLOR and non-TTY)
# ---------------------------------------------------------------------------

_CODES = {
    "RESET": "0",
    "BOLD": "1",
    "DIM": "2",
    "RED": "31",
    "GREEN": "32",
    "YELLOW": "33",
    "BLUE": "34",
    "MAGENTA": "35",
    "CYAN": "36",
    "BOLD_RED": "1;31",
    "BOLD_GREEN": "1;32",
    "BOLD_YELLOW": "1;33",
    "BOLD_CYAN": "1;36",
    "BOLD_WHITE": "1;37",
}


def color_supported(stream: TextIO = sys.stdout) -> bool:
    return (
        stream.isatty()
        and os.environ.get("NO_COLOR") is None
        and os.environ.get("TERM") != "dumb"
    )


class Palette:
    """ANSI escape sequences, empty strings when color is disabled."""

    RESET = BOLD = DIM = RED = GREEN = YELLOW = BLUE = MAGENTA = CYAN = ""
    BOLD_RED = BOLD_GREEN = BOLD_YELLOW = BOLD_CYAN = BOLD_WHITE = ""

    def __init__(self, enabled: bool) -> None:
        for name, code in _CODES.items():
            setattr(self, name, f"\033[{code}m" if enabled else "")


# ---------------------------------------------------------------------------
# Presentation protocol
# ---------------------------------------------------------------------------


class UI(Protocol):
    """Everything the link engine and orchestrators say to the user."""

    def info(self, msg: str) -> None: ...
    def success(self, msg: str) -> None: ...
    def warn(self, msg: str) -> None: ...
    def error(self, msg: str) -> None: ...
    def verbose(self, msg: str) -> None: ...
    def section(self, title: str) -> None: ...
    def linked(self, name: str) -> None: ...
    def skipped(self, name: str) -> None: ...
    def removed(self, name: str) -> None: ...


class SilentUI:
    """Discards all narration."""

    def info(self, msg: str) -> None:
        pass

    def success(self, msg: str) -> None:
        pass

    def warn(self, msg: str) -> None:
        pass

    def error(self, msg: str) -> None:
        pass

    def verbose(self, msg: str) -> None:
        pass

    def section(self, title: str) -> None:
        pass

    def linked(self, name: str) -> None:
        pass

    def skipped(self, name: str) -> None:
        pass

    def removed(self, name: str) -> None:
        pass


class TerminalUI:
    def __init__(self, verbose: bool = False, color: Optional[bool] = None,
                 out: Optional[TextIO] = None, err: Optional[TextIO] = None) -> None:
        self.out = out or sys.stdout
        self.err = err or sys.stderr
        self.show_verbose = verbose
        self.c = Palette(color_supported(self.out) if color is None else color)

    def _print(self, msg: str, stream: Optional[TextIO] = None) -> None:
        print(msg, file=stream or self.out)

    def info(self, msg: str) -> None:
        self._print(f"  {msg}")

    def success(self, msg: str) -> None:
        self._print(f"  {self.c.GREEN}{msg}{self.c.RESET}")

    def warn(self, msg: str) -> None:
        self._print(f"  {self.c.BOLD_YELLOW}Warning:{self.c.RESET} {msg}", self.err)

    def error(self, msg: str) -> None:
        self._print(f"  {self.c.BOLD_RED}Error:{self.c.RESET} {msg}", self.err)

    def verbose(self, msg: str) -> None:
        if self.show_verbose:
            self._print(f"  {self.c.DIM}[verbose] {msg}{self.c.RESET}")

    def section(self, title: str) -> None:
        width = 50
        rule = "─" * max(1, width - len(title) - 5)
        self._print(f"\n{self.c.BOLD_CYAN}─── {title} {rule}{self.c.RESET}")

    def title(self, text: str) -> None:
        self._print(f"\n{self.c.BOLD_CYAN}=== {text} ==={self.c.RESET}\n")

    def linked(self, name: str) -> None:
        self._print(f"  {self.c.GREEN}Linked{self.c.RESET} {name}")

    def skipped(self, name: str) -> None:
        self._print(f"  {self.c.DIM}Skipped{self.c.RESET} {name}")

    def removed(self, name: str) -> None:
        self._print(f"  {self.c.YELLOW}Removed{self.c.RESET} {name}")

    def table(self, headers: list[str], rows: list[list[str]]) -> None:
        widths = [len(h) for h in headers]
        for row in rows:
            for i, cell in enumerate(row):
                widths[i] = max(widths[i], len(cell))
        head = "  ".join(f"{h:{widths[i]}s}" for i, h in enumerate(headers))
        self._print(f"  {self.c.BOLD}{head}{self.c.RESET}")
        self._print(f"  {self.c.DIM}{'  '.join('─' * w for w in widths)}{self.c.RESET}")
        for row in rows:
            self._print("  " + "  ".join(f"{cell:{widths[i]}s}" for i, cell in enumerate(row)))


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------


def _ask(prompt: str) -> str:
    try:
        return input(prompt)
    except (EOFError, KeyboardInterrupt):
        print()
        raise UserCancelledError() from None


def confirm(prompt: str, default: bool = True, c: Optional[Palette] = None) -> bool:
    c = c or Palette(color_supported())
    suffix = f"{c.BOLD}[Y/n]{c.RESET}" if default else f"{c.BOLD}[y/N]{c.RESET}"
    answer = _ask(f"{prompt} {suffix} ").strip().lower()
    if not answer:
        return default
    return answer in ("y", "yes")


# ---------------------------------------------------------------------------
# Collection selection
# ---------------------------------------------------------------------------


def _describe(collection: Collection, installed: Sequence[str]) -> str:
    tag = "  (installed)" if collection.key in installed else ""
    return f"{collection.name:32s} {collection.count:>4d} files  {collection.description}{tag}"


def _file_estimate(collections: Sequence[Collection], keys: Iterable[str]) -> int:
    chosen = set(keys)
    return sum(c.count for c in collections if c.key in chosen)


def _curses_select(
    stdscr: Any,
    prompt: str,
    collections: list[Collection],
    preselected: list[str],
    installed: tuple[str, ...],
) -> list[str]:
    """Checkbox list drawn with curses. Called via curses.wrapper."""
    curses.curs_set(0)
    curses.use_default_colors()
    selected = set(preselected)
    cursor = 0
    hint = "(↑↓/jk move, Space toggle, a all, Enter confirm, q abort)"

    while True:
        stdscr.erase()
        max_y, max_x = stdscr.getmaxyx()
        stdscr.addnstr(0, 0, prompt, max_x - 1)
        stdscr.addnstr(1, 0, hint, max_x - 1)

        for i, c in enumerate(collections):
            row = i + 3
            if row >= max_y - 2:
                break
            marker = "x" if c.key in selected else " "
            attr = curses.A_REVERSE if i == cursor else curses.A_NORMAL
            stdscr.addnstr(row, 0, f"  [{marker}] {_describe(c, installed)}", max_x - 1, attr)

        footer = f"{len(selected)} selected, ~{_file_estimate(collections, selected)} files"
        stdscr.addnstr(min(len(collections) + 4, max_y - 1), 0, footer, max_x - 1)
        stdscr.refresh()
        key = stdscr.getch()

        if key in (curses.KEY_UP, ord("k")):
            cursor = (cursor - 1) % len(collections)
        elif key in (curses.KEY_DOWN, ord("j")):
            cursor = (cursor + 1) % len(collections)
        elif key == ord(" "):
            selected ^= {collections[cursor].key}
        elif key == ord("a"):
            every = {c.key for c in collections}
            selected = set() if selected == every else every
        elif key in (curses.KEY_ENTER, 10, 13):
            return [c.key for c in collections if c.key in selected]
        elif key in (ord("q"), 27):
            return []


def parse_selection(raw: str, collections: Sequence[Collection]) -> list[str]:
    """Turn "2, dlabs" into collection keys. Unknown entries are ignored."""
    known = {c.key for c in collections}
    chosen: list[str] = []
    for part in raw.split(","):
        token = part.strip()
        if token.isdigit() and 1 <= int(token) <= len(collections):
            key = collections[int(token) - 1].key
        elif token in known:
            key = token
        else:
            continue
        if key not in chosen:
            chosen.append(key)
    return chosen


def _numbered_select(
    prompt: str,
    collections: list[Collection],
    preselected: list[str],
    installed: tuple[str, ...],
) -> list[str]:
    print(f"\n{prompt}")
    for i, c in enumerate(collections, 1):
        marker = "*" if c.key in preselected else " "
        print(f"  {i}. [{marker}] {_describe(c, installed)}")
    if preselected:
        estimate = _file_estimate(collections, preselected)
        print(f"\n  (* = suggested, ~{estimate} files; press Enter to accept)")
    raw = _ask("\n  Select (numbers or keys, comma-separated, or 'all'): ").strip()
    if not raw:
        return [c.key for c in collections if c.key in preselected]
    if raw.lower() == "all":
        return [c.key for c in collections]
    return parse_selection(raw, collections)


def select_collections(
    prompt: str,
    collections: Sequence[Collection],
    preselected: Optional[Iterable[str]] = None,
    installed: Iterable[str] = (),
    auto_accept: bool = False,
) -> list[str]:
    """Let the user pick collection keys.

    ``auto_accept`` returns the preselection untouched (``--yes``). On a TTY a
    curses checkbox list is shown; otherwise a numbered prompt that also
    accepts collection keys.
    """
    if not collections:
        return []
    collections = list(collections)
    chosen = list(preselected or [])
    if auto_accept:
        return [c.key for c in collections if c.key in chosen]

    if _HAS_CURSES and sys.stdin.isatty() and sys.stdout.isatty():
        try:
            return curses.wrapper(_curses_select, prompt, collections, chosen, tuple(installed))
        except curses.error:
            pass

    return _numbered_select(prompt, collections, chosen, tuple(installed))
