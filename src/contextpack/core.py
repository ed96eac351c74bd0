"""
Core logic for contextpack package.
"""

from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import pathspec

from .sniff import is_binary_file

logger = logging.getLogger(__name__)

# Exceptions
class ContextPackError(Exception): ...
class InvalidRootError(ContextPackError): ...
class ConfigFileError(ContextPackError): ...
class OutputError(ContextPackError): ...


class TraversalError(ContextPackError):
    """Raised when a directory cannot be listed or an entry cannot be stat'ed."""

    def __init__(self, message: str, path: Path) -> None:
        super().__init__(message)
        self.path = path


class FileReadError(TraversalError):
    """Raised when a file that passed every filter cannot be read."""


# Defaults & helpers
IGNORE_FILENAME = ".gitignore"
VCS_DIRNAME = ".git"

_HEADER = b"File: "
_SEPARATOR = b"\n\n"
_HEADER_OVERHEAD = len("File: \n")


@dataclass(frozen=True)
class IncludedFile:
    path: str  # relative to the walk root, '/' separated
    content: bytes


# (depth of the directory that owns the rules, rules)
Scope = Tuple[int, List["IgnoreRule"]]


class IgnoreRule:
    """
    A single ignore pattern.

    * ``/name`` is *anchored*: matched against the whole relative path only.
    * ``dir/name`` is *path-shaped*: also matched against the whole path.
    * ``name`` is matched against every path segment, at any depth.

    One trailing ``/`` is dropped, so ``build/`` matches a file called
    ``build`` as well as a directory. Globs support ``*`` and ``?``, neither
    of which crosses a ``/``. ``**`` follows gitignore rules, so ``**/x``
    matches ``x`` and ``a/b/x``. A pattern still ending in ``/`` after the
    trim, such as ``foo//``, never matches.
    """

    __slots__ = ("pattern", "anchored", "path_shaped", "_spec")

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        body = pattern[:-1] if pattern.endswith("/") else pattern
        self.anchored = body.startswith("/")
        if self.anchored:
            body = body[1:]
        self.path_shaped = "/" in body
        self._spec: Optional[pathspec.PathSpec] = None
        # a path never ends in "/", so "foo//" can never match
        if body and not body.endswith("/"):
            try:
                # the leading '/' pins the glob to the start of whatever it is
                # matched against, and keeps '!' and '#' literal
                self._spec = pathspec.PathSpec.from_lines("gitwildmatch", ["/" + body])
            except ValueError as e:
                logger.warning("Ignoring invalid pattern %r: %s", pattern, e)

    def matches(self, rel_path: str, parts: Sequence[str]) -> bool:
        if self._spec is None:
            return False
        if self.anchored or self.path_shaped:
            return self._spec.match_file(rel_path)
        return any(self._spec.match_file(part) for part in parts)

    def __repr__(self) -> str:
        return f"IgnoreRule({self.pattern!r})"


# Ignore-file utilities
def parse_ignore_lines(lines: Iterable[str]) -> List[str]:
    return [
        ln.strip()
        for ln in lines
        if ln.strip() and not ln.lstrip().startswith("#")
    ]


def load_ignore_rules(directory: Path) -> List[IgnoreRule]:
    """Load ``<directory>/.gitignore``; a missing or unreadable file yields no rules."""
    ignore_path = directory / IGNORE_FILENAME
    try:
        with ignore_path.open("r", encoding="utf-8", errors="replace") as fh:
            patterns = parse_ignore_lines(fh)
    except OSError:
        return []
    if patterns:
        logger.debug("Loaded %d patterns from %s", len(patterns), ignore_path)
    return [IgnoreRule(p) for p in patterns]


def load_extra_patterns(config_path: Path) -> List[str]:
    if not config_path.exists():
        raise ConfigFileError(f"Config file '{config_path}' does not exist")
    if not config_path.is_file():
        raise ConfigFileError(f"'{config_path}' is not a file")
    try:
        with config_path.open("r", encoding="utf-8") as fh:
            return parse_ignore_lines(fh)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigFileError(f"Could not read config file '{config_path}': {e}")


def is_ignored(parts: Sequence[str], scopes: Sequence[Scope]) -> bool:
    """
    Check the root-relative path *parts* against every active scope.

    Each scope's rules see the path relative to the directory that owns them.
    """
    for depth, rules in scopes:
        local = parts[depth:]
        rel = "/".join(local)
        for rule in rules:
            if rule.matches(rel, local):
                return True
    return False


def resolve_root(root: Union[str, Path]) -> Path:
    try:
        root = Path(root).resolve()
    except (OSError, RuntimeError) as e:
        raise InvalidRootError(f"Could not resolve root path '{root}': {e}")
    if not root.exists():
        raise InvalidRootError(f"Root directory '{root}' does not exist")
    if not root.is_dir():
        raise InvalidRootError(f"Root path '{root}' is not a directory")
    return root


# Traversal
class Walker:
    """
    Depth-first, pre-order walk of a directory tree.

    With ``nested=True`` each directory's ``.gitignore`` applies to its own
    subtree. With ``nested=False`` nested ignore files are still loaded into
    :attr:`rule_sets` but only the root's rules are evaluated.
    """

    def __init__(
        self,
        root: Union[str, Path] = ".",
        extra_patterns: Optional[Iterable[str]] = None,
        nested: bool = True,
    ) -> None:
        self.root = resolve_root(root)
        self.extra_patterns = parse_ignore_lines(extra_patterns or [])
        self.nested = nested
        self.rule_sets: Dict[Path, List[IgnoreRule]] = {}

    def walk(self) -> List[IncludedFile]:
        self.rule_sets = {}
        root_rules = load_ignore_rules(self.root)
        root_rules += [IgnoreRule(p) for p in self.extra_patterns]
        if root_rules:
            self.rule_sets[self.root] = root_rules

        files: List[IncludedFile] = []
        self._walk_dir(self.root, (), [(0, root_rules)], files)
        logger.debug("Collected %d files under %s", len(files), self.root)
        return files

    def _walk_dir(
        self,
        directory: Path,
        parts: Tuple[str, ...],
        scopes: List[Scope],
        out: List[IncludedFile],
    ) -> None:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except FileNotFoundError:
            if not parts:
                raise TraversalError(f"Root directory '{directory}' vanished", directory)
            logger.debug("Skipping %s, it vanished during the walk", "/".join(parts))
            return
        except OSError as e:
            raise TraversalError(f"Could not list directory '{directory}': {e}", directory) from e

        for entry in entries:
            entry_parts = parts + (entry.name,)
            rel = "/".join(entry_parts)
            try:
                st = entry.stat(follow_symlinks=False)
            except FileNotFoundError:
                logger.debug("Skipping %s, it vanished during the walk", rel)
                continue
            except OSError as e:
                raise TraversalError(f"Could not stat '{entry.path}': {e}", Path(entry.path)) from e

            is_dir = stat.S_ISDIR(st.st_mode)
            if is_dir and entry.name == VCS_DIRNAME:
                continue
            if is_ignored(entry_parts, scopes):
                logger.debug("Ignoring %s%s", rel, "/" if is_dir else "")
                continue

            if is_dir:
                child = Path(entry.path)
                child_scopes = scopes
                rules = load_ignore_rules(child)
                if rules:
                    self.rule_sets[child] = rules
                    if self.nested:
                        child_scopes = scopes + [(len(entry_parts), rules)]
                self._walk_dir(child, entry_parts, child_scopes, out)
                continue

            if not stat.S_ISREG(st.st_mode):
                # symlinks are never followed, so cycles cannot occur
                logger.debug("Skipping non-regular entry %s", rel)
                continue

            path = Path(entry.path)
            if is_binary_file(path):
                logger.debug("Skipping binary %s", rel)
                continue
            try:
                content = path.read_bytes()
            except OSError as e:
                raise FileReadError(f"Could not read '{path}': {e}", path) from e
            out.append(IncludedFile(rel, content))


def walk(
    root: Union[str, Path] = ".",
    extra_patterns: Optional[Iterable[str]] = None,
    nested: bool = True,
) -> List[IncludedFile]:
    """Collect every included text file under *root*, in walk order."""
    return Walker(root, extra_patterns, nested=nested).walk()


# Aggregation
def render(files: Sequence[IncludedFile]) -> bytes:
    """
    Render *files* as ``File: <path>\\n<content>`` blocks.

    Blocks are separated by one blank line; content is copied verbatim and
    there is no trailing separator.
    """
    return _SEPARATOR.join(
        _HEADER + os.fsencode(f.path) + b"\n" + f.content for f in files
    )


def render_text(files: Sequence[IncludedFile]) -> str:
    return render(files).decode("utf-8", errors="replace")


def estimate_tokens(files: Sequence[IncludedFile]) -> int:
    """
    Rough token count: rendered size (headers included) divided by four.

    This is a heuristic and does not model any real tokenizer. Separators
    between blocks are not counted.
    """
    total = 0
    for f in files:
        total += len(os.fsencode(f.path)) + _HEADER_OVERHEAD + len(f.content)
    return total // 4
