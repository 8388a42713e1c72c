"""
Ignore rule evaluation

Rules follow .gitignore semantics: evaluated in order, the last matching
rule decides, "!" re-includes, and nothing is re-included below an
excluded directory. Each rule is compiled with pathspec's gitignore
pattern translator.
"""
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Literal, Optional, Pattern

from pathspec.patterns.gitignore import GitIgnorePatternError
from pathspec.patterns.gitignore.basic import GitIgnoreBasicPattern

from ...core.constants import CHECKPOINT_FILE, IGNORE_FILE_NAME, VCS_METADATA_DIR
from ...core.logging import get_logger
from ...core.utils import normalize_relpath

logger = get_logger(__name__)

RuleSource = Literal["builtin", "ignore-file", "user"]


@dataclass(frozen=True)
class IgnoreRule:
    """A single compiled pattern"""
    pattern: str
    negated: bool
    regex: Optional[Pattern[str]]
    source: RuleSource

    def matches(self, candidate: str) -> bool:
        if self.regex is None:
            return False
        return self.regex.search(candidate) is not None


def compile_rule(pattern: str, source: RuleSource) -> Optional[IgnoreRule]:
    """
    Compile one pattern line.

    Returns None for blank lines and comments. A malformed pattern becomes
    a rule that never matches.
    """
    if source == "user" and pattern.startswith("!"):
        # User patterns are exclude-only; "!" is literal
        pattern = "\\" + pattern

    try:
        compiled = GitIgnoreBasicPattern(pattern)
    except (GitIgnorePatternError, re.error) as e:
        logger.warning(f"Ignoring malformed pattern {pattern!r}: {e}")
        return IgnoreRule(pattern=pattern, negated=False, regex=None, source=source)

    if compiled.include is None:
        return None

    return IgnoreRule(
        pattern=pattern,
        negated=not compiled.include,
        regex=compiled.regex,
        source=source,
    )


def _compile_all(lines: Iterable[str], source: RuleSource) -> List[IgnoreRule]:
    rules = []
    for line in lines:
        rule = compile_rule(line.rstrip("\r\n"), source)
        if rule is not None:
            rules.append(rule)
    return rules


def builtin_rules(checkpoint_file: str = CHECKPOINT_FILE) -> List[IgnoreRule]:
    """VCS metadata anywhere and the checkpoint marker at the root"""
    return _compile_all([VCS_METADATA_DIR, "/" + checkpoint_file], "builtin")


@dataclass
class IgnoreRuleSet:
    """
    Ordered ignore rules.

    Built-in rules are checked first and cannot be overridden; the rest
    are ignore-file rules followed by user rules.
    """
    builtin: List[IgnoreRule] = field(default_factory=builtin_rules)
    rules: List[IgnoreRule] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        ignore_lines: Iterable[str] = (),
        user_patterns: Iterable[str] = (),
        checkpoint_file: str = CHECKPOINT_FILE,
    ) -> "IgnoreRuleSet":
        rules = _compile_all(ignore_lines, "ignore-file")
        rules.extend(_compile_all(user_patterns, "user"))
        return cls(builtin=builtin_rules(checkpoint_file), rules=rules)

    @classmethod
    def load(
        cls,
        local_root: Path,
        user_patterns: Iterable[str] = (),
        checkpoint_file: str = CHECKPOINT_FILE,
    ) -> "IgnoreRuleSet":
        """Read <local_root>/.gitignore (if any) and append user patterns"""
        return cls.build(
            read_ignore_file(local_root / IGNORE_FILE_NAME),
            user_patterns,
            checkpoint_file,
        )

    def __len__(self) -> int:
        return len(self.rules)


def read_ignore_file(path: Path) -> List[str]:
    """Lines of an ignore file; a missing or unreadable file has none"""
    try:
        return path.read_text(encoding="utf-8", errors="replace").splitlines()
    except FileNotFoundError:
        return []
    except OSError as e:
        logger.warning(f"Cannot read ignore file {path}: {e}")
        return []


def _last_match(rules: List[IgnoreRule], candidate: str) -> bool:
    excluded = False
    for rule in rules:
        if rule.matches(candidate):
            excluded = not rule.negated
    return excluded


def _excluded_here(rule_set: IgnoreRuleSet, path: str, is_dir: bool) -> bool:
    candidate = path + "/" if is_dir else path
    if any(rule.matches(candidate) for rule in rule_set.builtin):
        return True
    return _last_match(rule_set.rules, candidate)


def is_excluded(path: str, rule_set: IgnoreRuleSet, is_dir: bool = False) -> bool:
    """
    Check whether path (relative to the deployment root) is excluded.

    Ancestor directories are checked first; an excluded directory
    excludes everything beneath it.
    """
    rel = normalize_relpath(path)
    if not rel:
        return False

    parts = rel.split("/")
    for i in range(1, len(parts)):
        if _excluded_here(rule_set, "/".join(parts[:i]), is_dir=True):
            return True

    return _excluded_here(rule_set, rel, is_dir)
