"""Glob pattern compilation and matching."""

from __future__ import annotations

import os
import posixpath
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

# Characters that carry glob meaning and can be escaped with a backslash
GLOB_METACHARACTERS = frozenset("*?[]{}()+^$|")

_GLOB_CHARS = re.compile(r"[*?\[\]{}]")
_NUMERIC_RANGE = re.compile(r"^(-?\d+)\.\.(-?\d+)$")
_CHAR_RANGE = re.compile(r"^([A-Za-z])\.\.([A-Za-z])$")


@dataclass(frozen=True)
class GlobPattern:
    """A compiled glob pattern."""

    source: str
    regex: re.Pattern[str]
    dir_only: bool = False
    nocase: bool = False

    def matches(self, path: str | Path, is_dir: bool | None = None) -> bool:
        """
        Check a candidate path against this pattern.

        A trailing separator on the candidate marks it as a directory, as
        does passing ``is_dir=True``. Directory-only patterns reject
        candidates not known to be directories.
        """
        candidate = normalize_path(path)
        if candidate.endswith("/") and candidate != "/":
            candidate = candidate[:-1]
            is_dir = True
        if self.dir_only and not is_dir:
            return False
        if self.nocase:
            candidate = candidate.casefold()
        return self.regex.fullmatch(candidate) is not None


def normalize_path(path: str | Path) -> str:
    """Fold a path to POSIX form, keeping a trailing separator if present."""
    text = str(path).replace("\\", "/")
    if not text:
        return text
    trailing = text.endswith("/") and text != "/"
    text = posixpath.normpath(text)
    if trailing and text != "/":
        text += "/"
    return text


def _normalize_pattern(pattern: str) -> str:
    """Fold separators to ``/`` while keeping backslash escapes intact."""
    out: list[str] = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "\\":
            if i + 1 < len(pattern) and pattern[i + 1] in GLOB_METACHARACTERS:
                out.append(pattern[i : i + 2])
                i += 2
                continue
            out.append("/")
        else:
            out.append(char)
        i += 1
    text = "".join(out)
    while text.startswith("./") and len(text) > 2:
        text = text[2:]
    return text


def _find_brace_group(pattern: str) -> tuple[int, int]:
    """Return the span of the first expandable brace group, or (-1, -1)."""
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "\\":
            i += 2
            continue
        if char == "{":
            depth = 0
            j = i
            while j < len(pattern):
                c = pattern[j]
                if c == "\\":
                    j += 2
                    continue
                if c == "{":
                    depth += 1
                elif c == "}":
                    depth -= 1
                    if depth == 0:
                        break
                j += 1
            else:
                i += 1
                continue
            body = pattern[i + 1 : j]
            if len(_split_top_level(body)) > 1 or _range_options(body) is not None:
                return i, j
        i += 1
    return -1, -1


def _split_top_level(body: str) -> list[str]:
    """Split a brace body on commas that are not nested or escaped."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    i = 0
    while i < len(body):
        char = body[i]
        if char == "\\":
            current.append(body[i : i + 2])
            i += 2
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        elif char == "," and depth == 0:
            parts.append("".join(current))
            current = []
            i += 1
            continue
        current.append(char)
        i += 1
    parts.append("".join(current))
    return parts


def _range_options(body: str) -> list[str] | None:
    """
    Expand a ``a..b`` range body into literal alternatives.

    Both ends are inclusive. A reversed range counts down, so ``{3..1}``
    yields ``3, 2, 1``. Numeric ranges written with a leading zero are
    zero-padded to the widest end.
    """
    numeric = _NUMERIC_RANGE.match(body)
    if numeric:
        first, last = numeric.groups()
        start, end = int(first), int(last)
        step = 1 if end >= start else -1
        padded = any(len(s.lstrip("-")) > 1 and s.lstrip("-").startswith("0") for s in (first, last))
        width = max(len(first), len(last)) if padded else 0
        return [str(n).zfill(width) for n in range(start, end + step, step)]

    chars = _CHAR_RANGE.match(body)
    if chars:
        start, end = ord(chars.group(1)), ord(chars.group(2))
        step = 1 if end >= start else -1
        return [chr(c) for c in range(start, end + step, step)]

    return None


def _translate_class(pattern: str, start: int) -> tuple[str, int] | None:
    """Translate a ``[...]`` class starting at ``start``; None if unterminated."""
    i = start + 1
    negate = False
    if i < len(pattern) and pattern[i] in "!^":
        negate = True
        i += 1
    body_start = i
    # A ']' right after the opening bracket is a literal member
    if i < len(pattern) and pattern[i] == "]":
        i += 1
    while i < len(pattern) and pattern[i] != "]":
        i += 2 if pattern[i] == "\\" else 1
    if i >= len(pattern):
        return None

    members: list[str] = []
    j = body_start
    while j < i:
        char = pattern[j]
        if char == "\\" and j + 1 < i:
            members.append(re.escape(pattern[j + 1]))
            j += 2
        elif char == "-" and members and j + 1 < i:
            members.append("-")
            j += 1
        else:
            members.append(re.escape(char) if char in "\\]^[-" else char)
            j += 1

    body = "".join(members)
    if negate:
        return f"[^/{body}]", i + 1
    return f"[{body}]", i + 1


def _translate(pattern: str) -> str:
    """Translate one brace-free glob into a regular expression body."""
    parts: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        char = pattern[i]
        if char == "\\" and i + 1 < n:
            parts.append(re.escape(pattern[i + 1]))
            i += 2
        elif pattern.startswith("**", i):
            if pattern.startswith("**/", i):
                parts.append("(?:.*/)?")
                i += 3
            elif i + 2 == n and parts and parts[-1] == "/":
                parts[-1] = "(?:/.*)?"
                i += 2
            else:
                parts.append(".*")
                i += 2
        elif char == "*":
            parts.append("[^/]*")
            i += 1
        elif char == "?":
            parts.append("[^/]")
            i += 1
        elif char == "[":
            translated = _translate_class(pattern, i)
            if translated is None:
                parts.append(re.escape(char))
                i += 1
            else:
                parts.append(translated[0])
                i = translated[1]
        elif char == "/":
            parts.append("/")
            i += 1
        else:
            parts.append(re.escape(char))
            i += 1
    return "".join(parts)


class Glob:
    """Compiles glob patterns and matches paths against them."""

    def __init__(self) -> None:
        self._cache: dict[tuple[str, bool, bool], GlobPattern] = {}

    def is_valid_pattern(self, pattern: object) -> bool:
        """Return True if ``pattern`` is a non-empty string."""
        return isinstance(pattern, str) and pattern != ""

    def is_glob_pattern(self, text: str) -> bool:
        """Return True if ``text`` contains any glob syntax."""
        return bool(_GLOB_CHARS.search(text))

    def compile(
        self,
        pattern: str,
        *,
        dir_only: bool | None = None,
        nocase: bool = False,
    ) -> GlobPattern:
        """
        Compile a glob pattern, reusing a cached result when available.

        Args:
            pattern: Glob source string
            dir_only: Force directory-only matching; inferred from a
                trailing ``/`` when None
            nocase: Case-fold pattern and candidates before matching

        Raises:
            TypeError: If pattern is not a string
            ValueError: If pattern is empty
        """
        if not isinstance(pattern, str):
            raise TypeError(f"Glob pattern must be a string, got {type(pattern).__name__}")
        if not pattern:
            raise ValueError("Glob pattern must not be empty")

        source = _normalize_pattern(pattern)
        if dir_only is None:
            dir_only = source.endswith("/") and source != "/"

        key = (pattern, dir_only, nocase)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        body = source
        if body.endswith("/") and body != "/":
            body = body[:-1]
        if nocase:
            body = body.casefold()

        alternatives = [_translate(alt) for alt in self.expand(body)]
        regex = re.compile("(?:" + "|".join(alternatives) + ")", re.DOTALL)

        compiled = GlobPattern(source=pattern, regex=regex, dir_only=dir_only, nocase=nocase)
        self._cache[key] = compiled
        return compiled

    def is_match(
        self,
        path: str | Path,
        patterns: str | Iterable[str],
        *,
        nocase: bool = False,
        is_dir: bool | None = None,
    ) -> bool:
        """
        Test a path against a pattern or a list of patterns.

        In a list, entries starting with ``!`` are negations: the path
        matches when some plain entry matches and no negated entry does.
        Invalid patterns never match.
        """
        if isinstance(patterns, str) or not isinstance(patterns, Iterable):
            if not self.is_valid_pattern(patterns):
                return False
            return self.compile(patterns, nocase=nocase).matches(path, is_dir)

        included = False
        for pattern in patterns:
            if not self.is_valid_pattern(pattern):
                continue
            if pattern.startswith("!") and len(pattern) > 1:
                if self.compile(pattern[1:], nocase=nocase).matches(path, is_dir):
                    return False
            elif not included:
                included = self.compile(pattern, nocase=nocase).matches(path, is_dir)
        return included

    def expand(self, pattern: str) -> list[str]:
        """Expand brace groups and ranges, preserving left-to-right order."""
        start, end = _find_brace_group(pattern)
        if start < 0:
            return [pattern]

        prefix, body, suffix = pattern[:start], pattern[start + 1 : end], pattern[end + 1 :]
        options = _range_options(body)
        if options is None:
            options = _split_top_level(body)

        results: list[str] = []
        for option in options:
            results.extend(self.expand(prefix + option + suffix))
        return results

    def escape(self, raw: str) -> str:
        """Backslash-escape glob metacharacters so ``raw`` matches literally."""
        return "".join("\\" + c if c in GLOB_METACHARACTERS else c for c in raw)

    def parse_glob_pattern(self, pattern: str) -> tuple[str, str]:
        """
        Split a pattern into its literal base directory and glob remainder.

        Returns:
            Tuple of (base, pattern); base is ``"."`` when the first segment
            already contains glob syntax.
        """
        parts = pattern.replace("\\", "/").split("/")
        base_index = len(parts)
        for i, part in enumerate(parts):
            if self.is_glob_pattern(part):
                base_index = i
                break
        base = "/".join(parts[:base_index]) or "."
        remainder = "/".join(parts[base_index:])
        return base, remainder or "*"

    def match(
        self,
        patterns: str | list[str],
        cwd: str | Path = ".",
        *,
        dot: bool = False,
        follow: bool = False,
        nocase: bool = False,
    ) -> list[str]:
        """
        Walk ``cwd`` and return the relative paths matching the patterns.

        Directories are reported with a trailing ``/``. Dot entries are
        skipped unless ``dot`` is set; symlinked directories are descended
        only when ``follow`` is set.
        """
        if isinstance(patterns, str) or not isinstance(patterns, Iterable):
            if not self.is_valid_pattern(patterns):
                return []
        elif not any(self.is_valid_pattern(p) for p in patterns):
            return []

        root = Path(cwd)
        if not root.is_dir():
            return []

        results: list[str] = []
        visited: set[str] = set()

        def walk(directory: Path, prefix: str) -> None:
            real = os.path.realpath(directory)
            if real in visited:
                return
            visited.add(real)
            try:
                with os.scandir(directory) as entries:
                    for entry in entries:
                        if not dot and entry.name.startswith("."):
                            continue
                        rel = prefix + entry.name
                        try:
                            is_dir = entry.is_dir(follow_symlinks=follow)
                        except OSError:
                            continue
                        if is_dir:
                            if self.is_match(rel, patterns, nocase=nocase, is_dir=True):
                                results.append(rel + "/")
                            walk(Path(entry.path), rel + "/")
                        elif self.is_match(rel, patterns, nocase=nocase, is_dir=False):
                            results.append(rel)
            except OSError:
                return

        walk(root, "")
        return sorted(results)

    def clear_cache(self) -> None:
        self._cache.clear()


glob = Glob()

compile = glob.compile
is_match = glob.is_match
expand = glob.expand
escape = glob.escape
is_valid_pattern = glob.is_valid_pattern
