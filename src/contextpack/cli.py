"""
CLI entrypoint for contextpack package.
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import pyperclip
from colorama import Fore, Style, just_fix_windows_console

from . import __version__
from .core import (
    ConfigFileError,
    ContextPackError,
    OutputError,
    estimate_tokens,
    load_extra_patterns,
    render,
    render_text,
    walk,
)

DEFAULT_OUTPUT_NAME = "context.txt"


class _ColorFormatter(logging.Formatter):
    _COLORS = {
        logging.DEBUG: Fore.YELLOW,
        logging.WARNING: Fore.YELLOW + Style.BRIGHT,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }

    def format(self, record: logging.LogRecord) -> str:
        msg = super().format(record)
        color = self._COLORS.get(record.levelno)
        return color + msg + Style.RESET_ALL if color else msg


def _setup_logging(verbose: bool) -> None:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_ColorFormatter("[contextpack] %(message)s"))
    logger = logging.getLogger("contextpack")
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _say(msg: str, color: str = "") -> None:
    print(color + msg + Style.RESET_ALL if color else msg, file=sys.stderr)


def _fail(err: Exception) -> None:
    _say(f"Error: {err}", Fore.RED)
    sys.exit(1)


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="contextpack",
        description=(
            "Aggregate the text files of a directory into a single string "
            "for pasting into an LLM, respecting .gitignore rules."
        ),
    )
    p.add_argument(
        "path", nargs="?", type=Path, default=Path("."), help="Directory to pack (default: .)"
    )
    p.add_argument("-c", "--copy", action="store_true", help="Copy output to the system clipboard")
    p.add_argument(
        "-o",
        "--output",
        type=Path,
        help=f"Write output to a file ({DEFAULT_OUTPUT_NAME} inside it if a directory is given)",
    )
    p.add_argument(
        "--estimate", action="store_true", help="Print an estimated token count to stderr"
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Show which files are being packed")
    p.add_argument(
        "--ignore-pattern",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Extra ignore pattern, may be repeated (e.g. '*.test.go')",
    )
    p.add_argument(
        "--config",
        type=Path,
        help="Path to a file with extra ignore patterns (one per line)",
    )
    p.add_argument(
        "--root-only",
        action="store_true",
        help="Only apply the root .gitignore, ignoring nested ones",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p.parse_args(argv)


def resolve_output_path(output: Path) -> Path:
    """Map a directory to ``<dir>/context.txt`` and make sure the parent exists."""
    if output.is_dir():
        return output / DEFAULT_OUTPUT_NAME
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OutputError(f"Could not create directory '{output.parent}': {e}")
    return output


def write_output(data: bytes, out_path: Path) -> None:
    try:
        out_path.write_bytes(data)
    except OSError as e:
        raise OutputError(f"Could not write output file '{out_path}': {e}")


def format_token_estimate(count: int) -> str:
    message = f"TOKEN ESTIMATE: ~{count:,} tokens"
    line = "─" * (len(message) + 2)
    style = Fore.CYAN + Style.BRIGHT
    rows = (f"┌{line}┐", f"│ {message} │", f"└{line}┘")
    return "\n".join(style + row + Style.RESET_ALL for row in rows)


def _write_stdout(data: bytes) -> None:
    sys.stdout.flush()
    sys.stdout.buffer.write(data)
    sys.stdout.buffer.flush()


def main(argv: Optional[List[str]] = None) -> None:
    try:
        ns = _parse_args(argv)
        just_fix_windows_console()
        _setup_logging(ns.verbose)

        patterns = list(ns.ignore_pattern)
        if ns.config:
            try:
                patterns += load_extra_patterns(ns.config.resolve())
            except ConfigFileError as e:
                _fail(e)
            if ns.verbose:
                _say(f"[contextpack] Loaded extra patterns from {ns.config}")

        if ns.verbose:
            _say(f"[contextpack] Scanning {ns.path} …")

        try:
            files = walk(ns.path, patterns, nested=not ns.root_only)
        except ContextPackError as e:
            _fail(e)

        if ns.verbose:
            _say(f"[contextpack] Found {len(files)} files")
            for f in files:
                _say(f"  {f.path}")

        output = render(files)

        if ns.estimate:
            print(format_token_estimate(estimate_tokens(files)), file=sys.stderr)

        if ns.output:
            try:
                out_path = resolve_output_path(ns.output)
                write_output(output, out_path)
            except OutputError as e:
                _fail(e)
            _say(f"Done! Context written to {out_path}", Fore.GREEN)
        elif ns.copy:
            try:
                pyperclip.copy(render_text(files))
            except pyperclip.PyperclipException as e:
                _say(
                    f"Warning: Failed to copy to clipboard ({e}). "
                    "Printing to terminal instead.",
                    Fore.YELLOW,
                )
                _write_stdout(output)
            else:
                _say("Done! Context packed to clipboard.", Fore.GREEN)
        elif not ns.estimate or ns.verbose:
            # --estimate on its own only reports the count
            _write_stdout(output)

    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
