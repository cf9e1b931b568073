"""DataSource and ContextProvider backed by a YAML or JSON fixture file.

Example fixture:

    pull_request:
      org: acme
      repo: widgets
      number: 42
      current_user: alice
      pr_author: carol
    codeowners: |
      *       @acme/admins
      src/**  @acme/engineers
    files:
      - README.md
      - src/app.py
    reviews:
      - {login: bob, state: APPROVED, submitted_at: 2024-05-01T10:00:00Z}
    teams:
      admins: [alice]
      engineers: [bob, dave]

``codeowners`` is either the CODEOWNERS text or a mapping of repository location
(``.github/CODEOWNERS``, ``CODEOWNERS``, ...) to its text.
``reviews`` is either a list of review events, reduced to the latest decision
per login, or an already reduced ``login: bool`` mapping. A team missing from
``teams`` fails to fetch, like a roster the token cannot read.
"""

import hashlib
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from codeowners_review.approvals import ReviewEvent, reduce_reviews
from codeowners_review.exceptions import FixtureError, TransientFetchFailure
from codeowners_review.models import ChangedFile, PullRequestContext
from codeowners_review.ownership import CODEOWNERS_PATHS

logger = logging.getLogger(__name__)


def path_digest(path: str) -> str:
    """Diff anchor digest of a path (sha256 of the path, as GitHub uses)."""
    return hashlib.sha256(path.encode("utf-8")).hexdigest()


class Fixture(BaseModel):
    """Recorded state of a pull request."""

    pull_request: PullRequestContext
    codeowners: str | dict[str, str] | None = Field(
        default=None,
        description="CODEOWNERS text, or texts by location in the repository",
    )
    files: list[ChangedFile] = Field(default_factory=list)
    reviews: dict[str, bool] | list[ReviewEvent] = Field(default_factory=dict)
    teams: dict[str, list[str]] = Field(default_factory=dict)

    @field_validator("files", mode="before")
    @classmethod
    def _expand_paths(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        return [
            {"digest": path_digest(item), "path": item}
            if isinstance(item, str)
            else item
            for item in value
        ]

    @property
    def review_states(self) -> dict[str, bool]:
        if isinstance(self.reviews, dict):
            return dict(self.reviews)
        return reduce_reviews(self.reviews)


def load_fixture(path: str | Path) -> Fixture:
    """Load a fixture file.

    Raises:
        FixtureError: The file cannot be read or does not describe a fixture
    """
    try:
        data = YAML(typ="safe").load(Path(path).read_text(encoding="utf-8"))
        return Fixture.model_validate(data)
    except (OSError, YAMLError, ValidationError) as e:
        raise FixtureError(f"Cannot load fixture {path}: {e}") from e


class FixtureDataSource:
    """DataSource serving a Fixture. Counts fetches for inspection.

    CODEOWNERS texts given by location are probed in the order of ``paths``.
    """

    def __init__(
        self, fixture: Fixture, paths: Sequence[str] = CODEOWNERS_PATHS
    ) -> None:
        self.fixture = fixture
        self.paths = paths
        self.fetch_counts: dict[str, int] = {}

    def _count(self, name: str) -> None:
        self.fetch_counts[name] = self.fetch_counts.get(name, 0) + 1

    async def fetch_ownership_spec_text(
        self, org: str, repo: str, base_branch: str
    ) -> str | None:
        self._count("ownership_spec")
        codeowners = self.fixture.codeowners
        if not isinstance(codeowners, dict):
            return codeowners
        for path in self.paths:
            if path in codeowners:
                logger.debug(f"Using ownership spec {path} of {org}/{repo}")
                return codeowners[path]
        return None

    async def fetch_changed_files(self, pr: PullRequestContext) -> list[ChangedFile]:
        self._count("changed_files")
        return list(self.fixture.files)

    async def fetch_review_states(self, pr: PullRequestContext) -> dict[str, bool]:
        self._count("review_states")
        return self.fixture.review_states

    async def fetch_team_roster(self, org: str, team_slug: str) -> list[str]:
        self._count("team_roster")
        if team_slug not in self.fixture.teams:
            raise TransientFetchFailure(
                f"Team {org}/{team_slug} is not readable", resource=team_slug
            )
        return list(self.fixture.teams[team_slug])


class StaticContextProvider:
    """ContextProvider returning a fixed, replaceable context."""

    def __init__(self, context: PullRequestContext) -> None:
        self.context = context

    def current(self) -> PullRequestContext:
        return self.context
