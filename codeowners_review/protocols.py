"""Protocols for the engine's external collaborators.

The engine never talks to GitHub or the browser directly. A DataSource
fetches raw facts; a ContextProvider describes the pull request currently in
view and supplies the key fragments the caches are derived from.
"""

from typing import Protocol

from codeowners_review.models import ChangedFile, PullRequestContext


class DataSource(Protocol):
    """Protocol for fetching ownership and review data.

    Implementations raise TransientFetchFailure when a required fetch fails.
    """

    async def fetch_ownership_spec_text(
        self, org: str, repo: str, base_branch: str
    ) -> str | None:
        """Fetch the ownership spec (CODEOWNERS) text.

        Args:
            org: Repository owner
            repo: Repository name
            base_branch: Branch the pull request merges into

        Returns:
            Spec text, or None if the repository has no ownership spec
        """
        ...

    async def fetch_changed_files(self, pr: PullRequestContext) -> list[ChangedFile]:
        """Fetch the files changed by the pull request, in diff order."""
        ...

    async def fetch_review_states(self, pr: PullRequestContext) -> dict[str, bool]:
        """Fetch the latest review state per login.

        Returns:
            Mapping of login to True if their most recent decisive review
            approved the pull request
        """
        ...

    async def fetch_team_roster(self, org: str, team_slug: str) -> list[str]:
        """Fetch the full (all pages) member list of an org team.

        Raises:
            Exception: Any failure; the caller degrades the team to a
                pseudo-team of one
        """
        ...


class ContextProvider(Protocol):
    """Protocol for describing the pull request currently in view."""

    def current(self) -> PullRequestContext:
        """Return a freshly derived context.

        Called before and after every resolution pass; the results are
        compared to discard stale passes.
        """
        ...
