"""
Terminal styling for the fitsrender CLI.

colorama handles colour (including on Windows consoles) and tqdm draws the
per-row render progress bar.

Author: fitsrender contributors
"""

from __future__ import annotations

import os
import sys
import time

from colorama import Fore, Style, init as colorama_init
from tqdm import tqdm

colorama_init(autoreset=True)


class Colors:
    """ANSI styles used by the CLI."""

    TITLE = Fore.CYAN + Style.BRIGHT
    STAGE = Fore.BLUE + Style.BRIGHT
    OK = Fore.GREEN + Style.BRIGHT
    WARN = Fore.YELLOW
    FAIL = Fore.RED + Style.BRIGHT
    LABEL = Fore.MAGENTA
    VALUE = Fore.YELLOW + Style.BRIGHT
    PATH = Fore.CYAN
    CARD = Fore.WHITE
    LOG = Style.DIM
    RESET = Style.RESET_ALL


class Symbols:
    """Status glyphs; `use_ascii` swaps in plain-text equivalents."""

    OK = "✔"
    FAIL = "✘"
    LOAD = "\U0001F4C2"
    RENDER = "\U0001F3A8"
    SAVE = "\U0001F4BE"

    _ASCII = {"OK": "[OK]", "FAIL": "[X]", "LOAD": "[<]", "RENDER": "[*]", "SAVE": "[>]"}

    @classmethod
    def use_ascii(cls) -> None:
        for name, text in cls._ASCII.items():
            setattr(cls, name, text)


def styled(color: str, text: str) -> str:
    """Wrap text in a colour and a reset."""
    return f"{color}{text}{Colors.RESET}"


def print_header(text: str) -> None:
    """Print a title line underlined to its own width."""
    print()
    print(styled(Colors.TITLE, text))
    print(styled(Colors.TITLE, "-" * len(text)))


def print_success(text: str) -> None:
    print(styled(Colors.OK, f"{Symbols.OK} {text}"))


def print_warning(text: str) -> None:
    print(styled(Colors.WARN, f"warning: {text}"), file=sys.stderr)


def print_error(text: str) -> None:
    print(styled(Colors.FAIL, f"{Symbols.FAIL} {text}"), file=sys.stderr)


def print_metric(name: str, value: object) -> None:
    """Print an aligned ``name: value`` pair."""
    print(f"  {styled(Colors.LABEL, f'{name:<10}')} {styled(Colors.VALUE, str(value))}")


def print_path(label: str, path: str) -> None:
    print(f"  {styled(Colors.LABEL, f'{label:<10}')} {styled(Colors.PATH, path)}")


def print_log_line(line: str) -> None:
    """Print one line of the render log."""
    print(styled(Colors.LOG, f"    | {line}"))


def print_card(card: str) -> None:
    """Print one FITS header card, keyword highlighted."""
    keyword, rest = card[:8], card[8:]
    print(f"{styled(Colors.LABEL, keyword)}{styled(Colors.CARD, rest)}")


def create_progress_bar(
    total: int,
    desc: str,
    unit: str = "row",
    disable: bool = False,
) -> tqdm:
    """
    Create the progress bar shown while row bands render.

    Parameters
    ----------
    total : int
        Number of display rows.
    desc : str
        Label printed left of the bar.
    unit : str, default "row"
        Unit name for items.
    disable : bool, default False
        Create a silent bar (updates are accepted but nothing is drawn).

    Returns
    -------
    tqdm
        Progress bar, usable as a context manager.
    """
    return tqdm(
        total=total,
        desc=desc,
        unit=unit,
        bar_format="{desc}: {percentage:3.0f}%|{bar}| {n_fmt}/{total_fmt} {unit}s [{elapsed}]",
        ncols=80,
        colour="cyan",
        leave=False,
        disable=disable,
    )


class StageProgress:
    """
    Numbered stage reporting for one CLI run.

    Example
    -------
    >>> stages = StageProgress(total_stages=3)
    >>> stages.start_stage(1, "Loading FITS", Symbols.LOAD)
    >>> stages.update_detail("Axes: (2160, 3840)")
    >>> stages.complete_stage()
    """

    def __init__(self, total_stages: int = 3, quiet: bool = False):
        self.total_stages = total_stages
        self.quiet = quiet
        self._started: float | None = None

    def _emit(self, text: str) -> None:
        if not self.quiet:
            print(text)

    def start_stage(self, stage_num: int, name: str, glyph: str = "") -> None:
        self._started = time.perf_counter()
        self._emit(styled(Colors.STAGE, f"\n[{stage_num}/{self.total_stages}] {glyph} {name}"))

    def update_detail(self, text: str) -> None:
        self._emit(f"    {text}")

    def complete_stage(self, message: str = "done") -> None:
        took = ""
        if self._started is not None:
            took = f" in {time.perf_counter() - self._started:.2f}s"
        self._emit(styled(Colors.OK, f"    {Symbols.OK} {message}{took}"))

    def fail_stage(self, message: str) -> None:
        self._emit(styled(Colors.FAIL, f"    {Symbols.FAIL} {message}"))


def setup_terminal() -> None:
    """Use ASCII glyphs when stdout cannot encode the Unicode ones."""
    encoding = (getattr(sys.stdout, "encoding", None) or "").lower()
    if os.environ.get("TERM") == "dumb" or "utf" not in encoding:
        Symbols.use_ascii()
