"""Partitioning changed files into owner groups, and ranking the groups."""

from collections.abc import Iterable, Sequence, Set

from codeowners_review.models import (
    ApprovalStatus,
    ChangedFile,
    CommenterRole,
    OwnerFlags,
    OwnerGroup,
    OwnerToken,
)
from codeowners_review.ownership import OwnershipResolver
from codeowners_review.teams import PersonTeams, teams_for

ANY_REVIEWER_KEY = "__any__"
UNOWNED_KEY = "__unowned__"

# Ranks, most urgent first
PRIORITY_SOLE_OWNER = 0
PRIORITY_CO_OWNER = 1
PRIORITY_OWNER_APPROVED = 2
PRIORITY_UNAPPROVED = 3
PRIORITY_APPROVED = 4


def owner_key(owners: frozenset[OwnerToken] | None) -> str:
    if owners is None:
        return ANY_REVIEWER_KEY
    if not owners:
        return UNOWNED_KEY
    return ",".join(sorted(owners))


def group_files(
    files: Iterable[ChangedFile], resolver: OwnershipResolver
) -> list[OwnerGroup]:
    """Partition changed files by their resolved owner-set.

    Distinct rules yielding the same owner-set share one group. Groups and the
    files within them keep their first-seen order.
    """
    groups: dict[str, OwnerGroup] = {}
    for changed_file in files:
        owners = resolver.owners_for(changed_file.path)
        key = owner_key(owners)
        if key not in groups:
            groups[key] = OwnerGroup(key=key, owners=owners)
        groups[key].files.append(changed_file)
    return list(groups.values())


def compute_group_approval(group: OwnerGroup, approvals: Set[OwnerToken]) -> bool:
    if group.is_any_reviewer:
        # Anyone at all approving covers the "any reviewer" group
        return bool(approvals)
    if group.is_unowned:
        return True
    return any(owner in approvals for owner in group.owners or ())


def group_priority(
    group: OwnerGroup,
    user_teams: Set[OwnerToken],
    approvals: Set[OwnerToken],
    current_user: str | None,
    pr_author: str | None,
) -> int:
    """Rank a group by relevance to the current user, 0 being most urgent.

    0: the user is the sole covering owner and the group is unapproved
    1: the user is one of several covering owners, unapproved
    2: the user is a covering owner, approved
    3: unapproved
    4: approved

    Ranks 0 to 2 never apply to the pull request author.
    """
    approved = compute_group_approval(group, approvals)

    if current_user is not None and current_user != pr_author:
        # Anyone may approve the "any reviewer" group, the user included
        owners = user_teams if group.is_any_reviewer else group.owners or frozenset()
        user_owns = any(owner in user_teams for owner in owners)
        user_only_owner = user_owns and all(owner in user_teams for owner in owners)

        if user_only_owner and not approved:
            return PRIORITY_SOLE_OWNER
        if user_owns and not approved:
            return PRIORITY_CO_OWNER
        if user_owns and approved:
            return PRIORITY_OWNER_APPROVED

    return PRIORITY_APPROVED if approved else PRIORITY_UNAPPROVED


def rank_groups(
    groups: Iterable[OwnerGroup],
    user_teams: Set[OwnerToken],
    approvals: Set[OwnerToken],
    current_user: str | None,
    pr_author: str | None,
) -> list[OwnerGroup]:
    """Fill in approval and priority of every group, then sort them."""
    groups_list = list(groups)
    for group in groups_list:
        group.approved = compute_group_approval(group, approvals)
        group.priority = group_priority(
            group, user_teams, approvals, current_user, pr_author
        )
    return sort_groups(groups_list)


def sort_groups(groups: Iterable[OwnerGroup]) -> list[OwnerGroup]:
    """Sort by priority, then by file count descending. Ties keep their order."""
    return sorted(groups, key=lambda g: (g.priority, -len(g.files)))


def approval_status(groups: Sequence[OwnerGroup]) -> ApprovalStatus:
    """Count approvals over the groups that name owners.

    The "any reviewer" and unowned groups only count towards total_files.
    """
    required = [g for g in groups if g.requires_approval]
    return ApprovalStatus(
        received=sum(1 for g in required if g.approved),
        required=len(required),
        total_files=sum(len(g.files) for g in groups),
    )


def owner_flags(
    groups: Iterable[OwnerGroup],
    user_teams: Set[OwnerToken],
    approvals: Set[OwnerToken],
) -> dict[OwnerToken, OwnerFlags]:
    flags: dict[OwnerToken, OwnerFlags] = {}
    for group in groups:
        for owner in sorted(group.owners or ()):
            flags[owner] = OwnerFlags(
                covered_by_current_user=owner in user_teams,
                approved=owner in approvals,
            )
    return flags


def sort_owners_for_display(
    owners: Iterable[OwnerToken], user_teams: Set[OwnerToken]
) -> list[OwnerToken]:
    """Owners covered by the current user first, otherwise in given order."""
    return sorted(owners, key=lambda owner: owner not in user_teams)


def any_reviewer_approvers(approvals: Iterable[OwnerToken]) -> list[str]:
    """Logins of individuals who approved, for the "any reviewer" group."""
    return sorted({a.login for a in approvals if not a.is_team})


def is_owner_of_file(
    login: str,
    path: str,
    resolver: OwnershipResolver,
    person_teams: PersonTeams,
) -> bool:
    owners = resolver.owners_for(path)
    if not owners:
        return False
    return not owners.isdisjoint(teams_for(login, person_teams))


def is_owner_of_any_file(
    login: str,
    files: Sequence[ChangedFile],
    resolver: OwnershipResolver,
    person_teams: PersonTeams,
) -> bool:
    """Whether the login owns any changed file.

    Without a known file list every ownership rule is considered.
    """
    if not files:
        user_teams = teams_for(login, person_teams)
        return any(not rule.owners.isdisjoint(user_teams) for rule in resolver.rules)
    return any(
        is_owner_of_file(login, f.path, resolver, person_teams) for f in files
    )


def commenter_role(
    login: str,
    pr_author: str | None,
    resolver: OwnershipResolver,
    person_teams: PersonTeams,
    files: Sequence[ChangedFile] = (),
    path: str | None = None,
) -> CommenterRole:
    """Classify a comment author relative to the pull request.

    A comment on a file is judged against that file's owners, a general
    comment against every changed file.
    """
    if login == pr_author:
        return CommenterRole.AUTHOR
    is_owner = (
        is_owner_of_file(login, path, resolver, person_teams)
        if path
        else is_owner_of_any_file(login, files, resolver, person_teams)
    )
    return CommenterRole.OWNER if is_owner else CommenterRole.NON_OWNER
