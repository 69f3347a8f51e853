"""
Failure pattern detection in workflow logs.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .models import PatternMatch

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")
_TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d+)?Z\s*")


@dataclass(frozen=True)
class FailurePattern:
    """A named category of failure recognised by a regular expression."""
    name: str
    description: str
    regex: str

    def compile(self) -> "re.Pattern[str]":
        return re.compile(self.regex, re.IGNORECASE)


# Matched line by line and case-insensitively, like `grep -qi`
DEFAULT_PATTERNS = [
    FailurePattern("permission", "Permission issues", r"permission denied"),
    FailurePattern("missing_command", "Missing command or tool", r"command not found"),
    FailurePattern("missing_file", "Missing file or directory", r"no such file or directory"),
    FailurePattern("test_failure", "Test failures", r"(test.*failed|failed.*test|assertion.*error)"),
    FailurePattern("syntax_error", "Syntax or parse errors", r"(syntax.*error|parse.*error)"),
    FailurePattern("timeout", "Timeout issues", r"(timeout|timed out)"),
    FailurePattern("memory", "Memory issues", r"(out of memory|oom)"),
    FailurePattern(
        "network",
        "Network connectivity issues",
        r"(connection.*refused|connection.*timeout|network.*error)",
    ),
]


def clean_log_line(line: str) -> str:
    """Strip colour codes and the leading runner timestamp from a log line."""
    line = _ANSI_RE.sub("", line)
    # gh prefixes lines with "job<TAB>step<TAB>"; the timestamp follows
    parts = line.split("\t")
    parts[-1] = _TIMESTAMP_RE.sub("", parts[-1], count=1)
    return " | ".join(part.strip() for part in parts if part.strip())


class LogAnalyzer:
    """Scans log text for the known failure patterns."""

    def __init__(self, patterns: Optional[Iterable[FailurePattern]] = None, max_excerpts: int = 3):
        self.patterns = list(DEFAULT_PATTERNS if patterns is None else patterns)
        self.max_excerpts = max_excerpts
        self._compiled = [(pattern, pattern.compile()) for pattern in self.patterns]

    @classmethod
    def with_extra_patterns(cls, extra: Iterable[FailurePattern], max_excerpts: int = 3) -> "LogAnalyzer":
        """Default patterns followed by user supplied ones."""
        return cls([*DEFAULT_PATTERNS, *extra], max_excerpts=max_excerpts)

    def classify(self, logs: str) -> List[PatternMatch]:
        """
        Find which failure categories occur in the logs.

        Args:
            logs: Raw log text, typically from `gh run view --log-failed`

        Returns:
            One PatternMatch per matching category, in pattern order, each
            carrying up to max_excerpts cleaned matching lines
        """
        lines = logs.splitlines()
        matches = []

        for pattern, compiled in self._compiled:
            excerpts = []
            found = False
            for line in lines:
                if not compiled.search(line):
                    continue
                found = True
                if len(excerpts) >= self.max_excerpts:
                    break
                cleaned = clean_log_line(line)
                if cleaned and cleaned not in excerpts:
                    excerpts.append(cleaned)

            if found:
                matches.append(PatternMatch(pattern.name, pattern.description, excerpts))

        return matches
