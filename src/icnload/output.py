"""Console output for icnload, split by stream.

Follows `clig.dev <https://clig.dev/>`_ conventions:

* **stdout** carries data a script may consume: the ``--json`` run
  result, ``profile show`` records, ``profile list`` and ``check`` tables.
* **stderr** carries the run transcript and every other diagnostic. A CI
  server captures both streams, so the transcript still lands in the
  build log.
* Colour is dropped for ``NO_COLOR``, ``TERM=dumb`` and ``--no-color``.

Commands talk to the module-level helpers (:func:`info`, :func:`error`,
...), which delegate to the :class:`OutputManager` installed by the root
CLI callback through :func:`set_output`.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, NamedTuple, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table


class OutputFormat(str, Enum):
    """How data on stdout is rendered.

    ``AUTO`` picks ``RICH`` on an interactive, colour-capable terminal
    and ``PLAIN`` everywhere else (pipes, CI logs).
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class _Kind(NamedTuple):
    prefix: str
    style: str
    quiet_hides: bool


_INFO = _Kind("", "", True)
_SUCCESS = _Kind("", "green", True)
_SUGGEST = _Kind("→ ", "dim", True)
_WARNING = _Kind("Warning: ", "yellow", False)
_ERROR = _Kind("Error: ", "bold red", False)
_FAIL = _Kind("", "red", False)
_DEBUG = _Kind("[debug] ", "dim", False)


class OutputManager:
    """Holds the output preferences of one CLI invocation.

    Args:
        format: Rendering for stdout data. ``AUTO`` is resolved once,
            here, from TTY detection.
        no_color: Disable colour and Rich markup.
        quiet: Hide informational lines (transcript progress, "OK",
            suggestions). Warnings, errors and failed steps always show.
        verbose: Show debug lines, e.g. each request and its status.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._format = _resolve_format(format, self._no_color)

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            highlight=False,
            force_terminal=self._format == OutputFormat.RICH,
        )
        self._stderr = Console(
            file=sys.stderr,
            no_color=self._no_color,
            highlight=False,
            stderr=True,
        )

    @property
    def format(self) -> OutputFormat:
        return self._format

    # ------------------------------------------------------------------ #
    # stdout
    # ------------------------------------------------------------------ #

    def format_response(self, data: Any) -> None:
        """Render a record (usually a ``model_dump(mode="json")`` dict) to stdout.

        JSON mode prints it indented. Plain mode prints one ``key<TAB>value``
        line per entry. Rich mode draws a two-column table. Nested values
        are shown as compact JSON in plain and rich mode.
        """
        if self._format == OutputFormat.JSON:
            self.print_data(json.dumps(data, indent=2, ensure_ascii=False, default=str))
            return

        if not isinstance(data, (dict, list)):
            self.print_data(str(data))
        elif isinstance(data, list):
            for item in data:
                self.print_data(_cell(item))
        elif self._format == OutputFormat.PLAIN:
            for key, value in data.items():
                self.print_data(f"{key}\t{_cell(value)}")
        else:
            table = Table(show_header=False, box=None)
            table.add_column(style="bold cyan")
            table.add_column()
            for key, value in data.items():
                table.add_row(escape(str(key)), escape(_cell(value)))
            self._stdout.print(table)

    def print_data(self, text: str) -> None:
        """Write *text* and a newline to stdout, unstyled."""
        print(text, file=sys.stdout, flush=True)

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Print rows under *headers* to stdout.

        JSON mode emits a list of objects keyed by header, plain mode
        tab-separated lines with a header line, rich mode a drawn table.
        """
        if self._format == OutputFormat.JSON:
            self.print_data(
                json.dumps([dict(zip(headers, row)) for row in rows], indent=2, ensure_ascii=False)
            )
        elif self._format == OutputFormat.PLAIN:
            for line in [headers, *rows]:
                self.print_data("\t".join(line))
        else:
            table = Table(*headers, title=title, header_style="bold cyan")
            for row in rows:
                table.add_row(*map(escape, row))
            self._stdout.print(table)

    # ------------------------------------------------------------------ #
    # stderr
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        self._emit(_INFO, message)

    def success(self, message: str) -> None:
        self._emit(_SUCCESS, message)

    def suggest(self, message: str) -> None:
        """Print a next step for the user, e.g. the flag that fixes an error."""
        self._emit(_SUGGEST, message)

    def warning(self, message: str) -> None:
        self._emit(_WARNING, message)

    def error(self, message: str) -> None:
        self._emit(_ERROR, message)

    def fail(self, message: str) -> None:
        """Print a failed-step line of the transcript, without a prefix."""
        self._emit(_FAIL, message)

    def debug(self, message: str) -> None:
        if self._verbose:
            self._emit(_DEBUG, message)

    def _emit(self, kind: _Kind, message: str) -> None:
        if kind.quiet_hides and self._quiet:
            return
        text = kind.prefix + message
        if self._no_color:
            print(text, file=sys.stderr, flush=True)
        elif kind.style:
            self._stderr.print(f"[{kind.style}]{escape(text)}[/{kind.style}]", soft_wrap=True)
        else:
            self._stderr.print(escape(text), soft_wrap=True)


def _cell(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """Return True when ``NO_COLOR`` is set (to anything) or ``TERM=dumb``."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


def _resolve_format(requested: OutputFormat, no_color: bool) -> OutputFormat:
    if requested != OutputFormat.AUTO:
        return requested
    if _is_tty() and not no_color:
        return OutputFormat.RICH
    return OutputFormat.PLAIN


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager.

    Its consoles hold the streams that were current when it was created,
    so tests reset it rather than let it outlive a captured stream.
    """
    global _output
    _output = None


def format_response(data: Any) -> None:
    get_output().format_response(data)


def print_table(headers: list[str], rows: list[list[str]], title: Optional[str] = None) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
