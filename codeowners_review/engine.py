"""Resolution pipeline: from pull request context to ranked owner groups.

The engine is re-invoked by an external, debounced trigger. Every fetch sits
behind its own single-slot cache, so a pass over unchanged inputs issues no
fetch at all and only recomputes the cheap grouping and ranking.
"""

import asyncio
import logging
import time
from collections.abc import Callable

from codeowners_review.approvals import compute_owner_approvals
from codeowners_review.cache import (
    AsyncSingleSlotCache,
    repo_key,
    rules_key,
    time_bucket_key,
    timeline_key,
)
from codeowners_review.config import Settings
from codeowners_review.exceptions import TransientFetchFailure
from codeowners_review.grouping import (
    approval_status,
    group_files,
    owner_flags,
    rank_groups,
)
from codeowners_review.logger import pull_request_context
from codeowners_review.metrics import resolution_passes
from codeowners_review.models import (
    ChangedFile,
    OwnerToken,
    PullRequestContext,
    ResultState,
    ReviewResult,
)
from codeowners_review.ownership import OwnershipResolver
from codeowners_review.protocols import ContextProvider, DataSource
from codeowners_review.teams import (
    PersonTeams,
    TeamDirectory,
    build_directory,
    build_person_teams,
    teams_for,
)

logger = logging.getLogger(__name__)


class OwnershipEngine:
    """Resolves owner groups and approvals for the pull request in view.

    Args:
        source: DataSource fetching CODEOWNERS, files, reviews and rosters
        context_provider: Supplies the current pull request context
        settings: Application settings
        clock: Time source for the review state time buckets
    """

    def __init__(
        self,
        source: DataSource,
        context_provider: ContextProvider,
        settings: Settings | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._source = source
        self._context_provider = context_provider
        self._settings = settings or Settings()
        self._clock = clock

        # One cache per data kind, each with its own key strategy
        self._rules_cache: AsyncSingleSlotCache[tuple, OwnershipResolver] = (
            AsyncSingleSlotCache(name="ownership_rules")
        )
        self._directory_cache: AsyncSingleSlotCache[tuple, TeamDirectory] = (
            AsyncSingleSlotCache(name="team_directory")
        )
        self._files_cache: AsyncSingleSlotCache[tuple, list[ChangedFile]] = (
            AsyncSingleSlotCache(name="changed_files")
        )
        self._reviews_cache: AsyncSingleSlotCache[tuple, dict[str, bool]] = (
            AsyncSingleSlotCache(name="review_states")
        )

        self.last_result: ReviewResult | None = None

    async def _fetch_resolver(self, ctx: PullRequestContext) -> OwnershipResolver:
        text = await self._source.fetch_ownership_spec_text(
            ctx.org, ctx.repo, ctx.base_branch
        )
        resolver = OwnershipResolver.from_text(
            text, empty_owners=self._settings.empty_owners_policy
        )
        logger.info(
            f"Loaded {len(resolver)} ownership rules for "
            f"{ctx.org}/{ctx.repo}@{ctx.base_branch}"
        )
        return resolver

    async def get_resolver(self, ctx: PullRequestContext) -> OwnershipResolver:
        return await self._rules_cache.get(
            rules_key(ctx), lambda: self._fetch_resolver(ctx)
        )

    async def get_directory(
        self, ctx: PullRequestContext, tokens: set[OwnerToken]
    ) -> TeamDirectory:
        # Tokens are part of the key so a base branch adding new teams is seen
        key = (*repo_key(ctx), frozenset(tokens))
        return await self._directory_cache.get(
            key,
            lambda: build_directory(
                tokens,
                ctx.org,
                self._source,
                concurrency=self._settings.roster_concurrency,
            ),
        )

    async def get_changed_files(self, ctx: PullRequestContext) -> list[ChangedFile]:
        return await self._files_cache.get(
            timeline_key(ctx), lambda: self._source.fetch_changed_files(ctx)
        )

    async def get_review_states(self, ctx: PullRequestContext) -> dict[str, bool]:
        key = time_bucket_key(
            ctx, self._settings.review_state_bucket_seconds, self._clock
        )
        return await self._reviews_cache.get(
            key, lambda: self._source.fetch_review_states(ctx)
        )

    async def _get_ownership(
        self, ctx: PullRequestContext
    ) -> tuple[OwnershipResolver, TeamDirectory]:
        resolver = await self.get_resolver(ctx)
        if not len(resolver):
            return resolver, {}
        return resolver, await self.get_directory(ctx, resolver.all_owners())

    async def resolve(self, ctx: PullRequestContext) -> ReviewResult:
        """Compute the ranked owner groups of a pull request.

        Raises:
            TransientFetchFailure: A required fetch failed
        """
        (resolver, directory), files, review_state = await asyncio.gather(
            self._get_ownership(ctx),
            self.get_changed_files(ctx),
            self.get_review_states(ctx),
        )

        identity = {"pull_request": ctx.slug, "fingerprint": ctx.fingerprint()}
        if not len(resolver):
            return ReviewResult(state=ResultState.NO_OWNERSHIP_SPEC, **identity)
        if not files:
            return ReviewResult(state=ResultState.NO_FILES, **identity)

        person_teams: PersonTeams = build_person_teams(directory)
        approvals = compute_owner_approvals(review_state, person_teams)
        user_teams = (
            teams_for(ctx.current_user, person_teams) if ctx.current_user else set()
        )

        groups = rank_groups(
            group_files(files, resolver),
            user_teams,
            approvals,
            ctx.current_user,
            ctx.pr_author,
        )
        return ReviewResult(
            state=ResultState.ACTIVE,
            **identity,
            groups=groups,
            approval_status=approval_status(groups),
            owner_flags=owner_flags(groups, user_teams, approvals),
            owner_approvals=approvals,
        )

    async def run_pass(self) -> ReviewResult | None:
        """Run one resolution pass for the current context.

        Returns:
            The fresh result; the last good result of the same context if a
            required fetch failed; None if the context changed while the
            pass ran or no such result exists
        """
        ctx = self._context_provider.current()
        fingerprint = ctx.fingerprint()
        token = pull_request_context.set(ctx.slug)
        try:
            result = await self.resolve(ctx)
        except TransientFetchFailure as e:
            logger.warning(f"Resolution pass aborted, keeping last result: {e}")
            resolution_passes.labels(outcome="failed").inc()
            if self.last_result and self.last_result.fingerprint == fingerprint:
                return self.last_result
            return None
        finally:
            pull_request_context.reset(token)

        if self._context_provider.current().fingerprint() != fingerprint:
            logger.debug("Discarding result of a superseded resolution pass")
            resolution_passes.labels(outcome="stale").inc()
            return None

        resolution_passes.labels(outcome=result.state.value).inc()
        self.last_result = result
        return result
