"""Aggregation of per-person reviews into per-owner approvals."""

from collections.abc import Iterable, Mapping
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel

from codeowners_review.models import OwnerToken
from codeowners_review.teams import PersonTeams, teams_for


class ReviewDecision(StrEnum):
    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    COMMENTED = "COMMENTED"
    DISMISSED = "DISMISSED"
    PENDING = "PENDING"


class ReviewEvent(BaseModel, frozen=True):
    """A single submitted review, as listed by the pull request API."""

    login: str
    state: ReviewDecision
    submitted_at: datetime | None = None


def reduce_reviews(events: Iterable[ReviewEvent]) -> dict[str, bool]:
    """Reduce review events to one approval boolean per login.

    The latest decisive review wins: APPROVED sets the login approved,
    CHANGES_REQUESTED and DISMISSED unset it, COMMENTED and PENDING leave the
    previous decision untouched. Events without a timestamp sort first and
    keep their relative order.
    """
    decisions: dict[str, bool] = {}
    ordered = sorted(
        events,
        key=lambda e: (e.submitted_at is not None, e.submitted_at or datetime.min),
    )
    for event in ordered:
        if event.state == ReviewDecision.APPROVED:
            decisions[event.login] = True
        elif event.state in {
            ReviewDecision.CHANGES_REQUESTED,
            ReviewDecision.DISMISSED,
        }:
            decisions[event.login] = False
        else:
            decisions.setdefault(event.login, False)
    return decisions


def compute_owner_approvals(
    review_state: Mapping[str, bool], person_teams: PersonTeams
) -> set[OwnerToken]:
    """Every owner token covering at least one approving login."""
    approvals: set[OwnerToken] = set()
    for login, approved in review_state.items():
        if approved:
            approvals |= teams_for(login, person_teams)
    return approvals
