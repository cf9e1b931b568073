"""Team directory: owner tokens to members, and members back to teams."""

import asyncio
import logging
from collections.abc import Iterable

from codeowners_review.metrics import roster_failures
from codeowners_review.models import OwnerToken
from codeowners_review.protocols import DataSource

logger = logging.getLogger(__name__)

TeamDirectory = dict[OwnerToken, list[str]]
PersonTeams = dict[str, set[OwnerToken]]


async def _fetch_members(
    token: OwnerToken,
    org: str,
    source: DataSource,
    semaphore: asyncio.Semaphore,
) -> list[str]:
    if not token.is_team_of(org):
        return [token.login]

    async with semaphore:
        try:
            members = await source.fetch_team_roster(org, token.slug or "")
        except Exception as e:  # noqa: BLE001
            logger.warning(
                f"Team roster unavailable, treating {token} as a pseudo-team: {e}"
            )
            roster_failures.labels(org=org).inc()
            return [token.login]

    logger.debug(f"Resolved {token} to {len(members)} members")
    return list(members)


async def build_directory(
    tokens: Iterable[OwnerToken],
    org: str,
    source: DataSource,
    concurrency: int = 8,
) -> TeamDirectory:
    """Resolve owner tokens to their member logins.

    Teams of the pull request's org are fetched concurrently. Any other token
    (individuals, foreign org teams) becomes a pseudo-team of one, and so
    does a team whose roster fetch fails.

    Args:
        tokens: Owner tokens to resolve
        org: Org of the pull request
        source: DataSource providing team rosters
        concurrency: Max roster fetches in flight

    Returns:
        Mapping of every token to its member logins
    """
    unique = sorted(set(tokens))
    semaphore = asyncio.Semaphore(max(concurrency, 1))
    rosters = await asyncio.gather(*[
        _fetch_members(token, org, source, semaphore) for token in unique
    ])
    return dict(zip(unique, rosters, strict=True))


def build_person_teams(directory: TeamDirectory) -> PersonTeams:
    """Invert a team directory into login -> teams.

    Every member and every token gets at least a self pseudo-team entry.
    """
    person_teams: PersonTeams = {}
    for token, members in directory.items():
        person_teams.setdefault(token, {OwnerToken(token)})
        for member in members:
            teams = person_teams.setdefault(member, {OwnerToken(member)})
            teams.add(token)
    return person_teams


def teams_for(login: str, person_teams: PersonTeams) -> set[OwnerToken]:
    """Teams of a login, defaulting to its own pseudo-team."""
    return person_teams.get(login) or {OwnerToken(login)}
