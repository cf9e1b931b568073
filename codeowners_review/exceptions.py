"""Exception hierarchy for codeowners-review.

Only failures that abort something are exceptions. An absent ownership spec
and a failed team roster are expected states: the former is reported through
``ResultState.NO_OWNERSHIP_SPEC``, the latter degrades the team to a
pseudo-team of one.
"""


class CodeownersReviewError(Exception):
    """Base exception for codeowners-review errors."""

    def __init__(self, message: str) -> None:
        """Initialize error."""
        self.message = message
        super().__init__(self.message)


class TransientFetchFailure(CodeownersReviewError):
    """A required fetch failed (network, auth, rate limit).

    Raised by DataSource implementations. Aborts the current resolution pass
    only; the engine keeps the last good result and the next trigger retries.
    """

    def __init__(self, message: str, resource: str | None = None) -> None:
        """Initialize transient fetch failure."""
        self.resource = resource
        super().__init__(message)


class MalformedRuleError(CodeownersReviewError, ValueError):
    """A single ownership spec line cannot be parsed.

    Caught per line by the parser; the line is skipped.
    """

    def __init__(self, message: str, line: int) -> None:
        """Initialize malformed rule error."""
        self.line = line
        super().__init__(f"line {line}: {message}")


class FixtureError(CodeownersReviewError):
    """A fixture file cannot be loaded."""
