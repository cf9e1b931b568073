"""CODEOWNERS-style ownership spec parser and path resolver.

Rule precedence is purely positional: the last CODEOWNERS line that matches
a path wins, regardless of how specific its glob is. Rules are therefore
returned in reverse source order so the first match found is the winner.
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum

from pathspec import GitIgnoreSpec

from codeowners_review.exceptions import MalformedRuleError
from codeowners_review.metrics import malformed_rule_lines
from codeowners_review.models import OwnerToken

logger = logging.getLogger(__name__)

# Locations probed for the ownership spec, in order
CODEOWNERS_PATHS = (".github/CODEOWNERS", "CODEOWNERS", "docs/CODEOWNERS")

OWNER_TOKEN_RE = re.compile(
    r"^(@?[A-Za-z0-9_.-]+(/[A-Za-z0-9_.-]+)?|[^@\s]+@[^@\s]+\.[^@\s]+)$"
)


class EmptyOwnersPolicy(StrEnum):
    """How a matched rule without owner tokens resolves.

    UNOWNED: the files have no owners, no approval is required for them.
    FALL_THROUGH: the rule is ignored and earlier rules are searched.
    ANY_REVIEWER: the files land in the "any reviewer" group.
    """

    UNOWNED = "unowned"
    FALL_THROUGH = "fall_through"
    ANY_REVIEWER = "any_reviewer"


@dataclass(frozen=True)
class OwnershipRule:
    pattern: str
    owners: frozenset[OwnerToken]
    line: int
    matcher: GitIgnoreSpec = field(compare=False, repr=False)

    def matches(self, path: str) -> bool:
        return self.matcher.match_file(path.lstrip("/"))


def _parse_line(line: str, lineno: int) -> OwnershipRule:
    pattern, *tokens = line.split()

    owners: list[OwnerToken] = []
    for token in tokens:
        # Trailing comment ends the owner list
        if token.startswith("#"):
            break
        if not OWNER_TOKEN_RE.match(token):
            raise MalformedRuleError(f"invalid owner {token!r}", lineno)
        owners.append(OwnerToken(token))

    if pattern.startswith("!"):
        raise MalformedRuleError(f"negated pattern {pattern!r}", lineno)

    try:
        matcher = GitIgnoreSpec.from_lines([pattern])
    except ValueError as e:
        raise MalformedRuleError(f"invalid pattern {pattern!r}: {e}", lineno) from e

    return OwnershipRule(
        pattern=pattern, owners=frozenset(owners), line=lineno, matcher=matcher
    )


def parse_rules(text: str | Iterable[str] | None) -> list[OwnershipRule]:
    """Parse ownership spec text into rules, last source line first.

    Args:
        text: CODEOWNERS text or its lines. None yields no rules.

    Returns:
        Rules in reverse source order. Blank lines, comment lines and
        malformed lines are skipped.
    """
    if text is None:
        return []
    lines = text.splitlines() if isinstance(text, str) else text

    rules: list[OwnershipRule] = []
    for lineno, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        try:
            rules.append(_parse_line(line, lineno))
        except MalformedRuleError as e:
            logger.warning(f"Skipping malformed ownership rule: {e.message}")
            malformed_rule_lines.inc()

    rules.reverse()
    return rules


def resolve(
    path: str,
    rules: Iterable[OwnershipRule],
    empty_owners: EmptyOwnersPolicy = EmptyOwnersPolicy.UNOWNED,
) -> frozenset[OwnerToken] | None:
    """Resolve the owners of a path.

    Args:
        path: File path relative to the repository root
        rules: Rules as returned by parse_rules (reverse source order)
        empty_owners: Resolution of a matched rule without owners

    Returns:
        Owner set of the winning rule, an empty frozenset for explicitly
        unowned paths, or None when no rule matches
    """
    for rule in rules:
        if not rule.matches(path):
            continue
        if rule.owners:
            return rule.owners
        if empty_owners == EmptyOwnersPolicy.UNOWNED:
            return frozenset()
        if empty_owners == EmptyOwnersPolicy.ANY_REVIEWER:
            return None
    return None


class OwnershipResolver:
    """Parsed ownership spec bound to an empty-owners policy."""

    def __init__(
        self,
        rules: list[OwnershipRule],
        empty_owners: EmptyOwnersPolicy = EmptyOwnersPolicy.UNOWNED,
    ) -> None:
        self.rules = rules
        self.empty_owners = empty_owners

    @classmethod
    def from_text(
        cls,
        text: str | None,
        empty_owners: EmptyOwnersPolicy = EmptyOwnersPolicy.UNOWNED,
    ) -> "OwnershipResolver":
        return cls(parse_rules(text), empty_owners=empty_owners)

    def __len__(self) -> int:
        return len(self.rules)

    def owners_for(self, path: str) -> frozenset[OwnerToken] | None:
        return resolve(path, self.rules, self.empty_owners)

    def all_owners(self) -> set[OwnerToken]:
        """Every owner token mentioned by any rule."""
        owners: set[OwnerToken] = set()
        for rule in self.rules:
            owners.update(rule.owners)
        return owners
