"""Pydantic models for the ownership and approval engine."""

import re
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, GetCoreSchemaHandler
from pydantic_core import core_schema

TEAM_TOKEN_RE = re.compile(r"^@(?P<org>[^/\s]+)/(?P<slug>[^/\s]+)$")


class OwnerToken(str):
    """Opaque identifier of a team (``@org/slug``) or an individual.

    Tokens are compared and hashed as plain strings. The only structure the
    engine relies on is whether a token names an org team.
    """

    __slots__ = ()

    @property
    def is_team(self) -> bool:
        return TEAM_TOKEN_RE.match(self) is not None

    @property
    def org(self) -> str | None:
        match = TEAM_TOKEN_RE.match(self)
        return match["org"] if match else None

    @property
    def slug(self) -> str | None:
        match = TEAM_TOKEN_RE.match(self)
        return match["slug"] if match else None

    @property
    def login(self) -> str:
        """Login a pseudo-team of this token stands for.

        ``@alice`` and ``alice`` denote the same person; e-mail tokens and
        team tokens are returned unchanged.
        """
        if self.is_team or "@" in self[1:]:
            return str(self)
        return self.removeprefix("@")

    def is_team_of(self, org: str) -> bool:
        """Whether this token is a team of the given org (case-insensitive)."""
        token_org = self.org
        return token_org is not None and token_org.lower() == org.lower()

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_after_validator_function(
            cls, core_schema.str_schema()
        )


class ResultState(StrEnum):
    """Outcome of a resolution pass."""

    ACTIVE = "active"
    NO_OWNERSHIP_SPEC = "no_ownership_spec"
    NO_FILES = "no_files"

    @property
    def description(self) -> str:
        return {
            ResultState.ACTIVE: "",
            ResultState.NO_OWNERSHIP_SPEC: "No CODEOWNERS file found",
            ResultState.NO_FILES: "No files to review",
        }[self]


class CommenterRole(StrEnum):
    AUTHOR = "author"
    OWNER = "owner"
    NON_OWNER = "non-owner"


class ChangedFile(BaseModel, frozen=True):
    """A file changed by the pull request."""

    digest: str = Field(..., description="Diff anchor digest of the file")
    path: str = Field(..., description="File path relative to repo root")


class OwnerGroup(BaseModel):
    """Changed files sharing an identical resolved owner-set.

    ``owners`` is ``None`` for the "any reviewer" group (files no rule
    matched) and an empty frozenset for explicitly unowned files.
    """

    key: str = Field(..., description="Canonical owner-set key")
    owners: frozenset[OwnerToken] | None = Field(
        default=None, description="Owners that may approve the files"
    )
    files: list[ChangedFile] = Field(default_factory=list)
    approved: bool = Field(default=False)
    priority: int = Field(default=4, description="0 (most urgent) to 4")

    @property
    def is_any_reviewer(self) -> bool:
        return self.owners is None

    @property
    def is_unowned(self) -> bool:
        return self.owners is not None and not self.owners

    @property
    def requires_approval(self) -> bool:
        return bool(self.owners)


class ApprovalStatus(BaseModel, frozen=True):
    """Approval summary over all owner groups."""

    received: int = Field(default=0, description="Owner groups with approval")
    required: int = Field(default=0, description="Owner groups needing approval")
    total_files: int = Field(default=0, description="Changed files in all groups")

    @property
    def fully_approved(self) -> bool:
        return self.received == self.required


class OwnerFlags(BaseModel, frozen=True):
    """Display flags of a single owner token."""

    covered_by_current_user: bool = False
    approved: bool = False


class PullRequestContext(BaseModel, frozen=True):
    """Everything the engine knows about the pull request being viewed.

    Supplied by a ContextProvider; the fields double as opaque cache key
    fragments.
    """

    org: str
    repo: str
    number: int
    base_branch: str = "main"
    url: str = ""
    current_user: str | None = None
    pr_author: str | None = None
    timeline_count: int = Field(
        default=0, description="Lazily loaded timeline items seen so far"
    )

    @property
    def slug(self) -> str:
        return f"{self.org}/{self.repo}#{self.number}"

    def fingerprint(self) -> str:
        """Identity of the inputs a pass depends on (stale-write guard)."""
        return "|".join([
            self.org,
            self.repo,
            str(self.number),
            self.base_branch,
            self.url,
            self.current_user or "",
            self.pr_author or "",
            str(self.timeline_count),
        ])


class ReviewResult(BaseModel):
    """Engine output consumed by the rendering collaborator."""

    state: ResultState
    pull_request: str = ""
    fingerprint: str = ""
    groups: list[OwnerGroup] = Field(default_factory=list)
    approval_status: ApprovalStatus | None = None
    owner_flags: dict[OwnerToken, OwnerFlags] = Field(default_factory=dict)
    owner_approvals: set[OwnerToken] = Field(
        default_factory=set, description="Owner tokens covering an approval"
    )
