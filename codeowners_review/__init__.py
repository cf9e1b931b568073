"""Code owner resolution and approval aggregation for pull requests.

Resolves which owners are responsible for each changed file of a pull
request, groups files by owner-set and ranks the groups by how urgently the
current user needs to act on them.
"""

from codeowners_review.approvals import compute_owner_approvals, reduce_reviews
from codeowners_review.cache import AsyncSingleSlotCache, SingleSlotCache
from codeowners_review.engine import OwnershipEngine
from codeowners_review.models import (
    ApprovalStatus,
    ChangedFile,
    OwnerGroup,
    OwnerToken,
    PullRequestContext,
    ResultState,
    ReviewResult,
)
from codeowners_review.ownership import (
    EmptyOwnersPolicy,
    OwnershipResolver,
    parse_rules,
    resolve,
)
from codeowners_review.protocols import ContextProvider, DataSource

__all__ = [
    "ApprovalStatus",
    "AsyncSingleSlotCache",
    "ChangedFile",
    "ContextProvider",
    "DataSource",
    "EmptyOwnersPolicy",
    "OwnerGroup",
    "OwnerToken",
    "OwnershipEngine",
    "OwnershipResolver",
    "PullRequestContext",
    "ResultState",
    "ReviewResult",
    "SingleSlotCache",
    "compute_owner_approvals",
    "parse_rules",
    "reduce_reviews",
    "resolve",
]
