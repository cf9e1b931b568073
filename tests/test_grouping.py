"""Tests for owner grouping, ranking and commenter classification."""

import pytest

from codeowners_review.grouping import (
    ANY_REVIEWER_KEY,
    PRIORITY_APPROVED,
    PRIORITY_CO_OWNER,
    PRIORITY_OWNER_APPROVED,
    PRIORITY_SOLE_OWNER,
    PRIORITY_UNAPPROVED,
    UNOWNED_KEY,
    any_reviewer_approvers,
    approval_status,
    commenter_role,
    group_files,
    group_priority,
    owner_flags,
    rank_groups,
    sort_groups,
    sort_owners_for_display,
)
from codeowners_review.fixture_source import path_digest
from codeowners_review.models import ChangedFile, CommenterRole, OwnerGroup, OwnerToken
from codeowners_review.ownership import OwnershipResolver


def changed(*paths: str) -> list[ChangedFile]:
    return [ChangedFile(digest=path_digest(p), path=p) for p in paths]


def owners(*tokens: str) -> frozenset[OwnerToken]:
    return frozenset(OwnerToken(t) for t in tokens)


def tokens(*values: str) -> set[OwnerToken]:
    return {OwnerToken(v) for v in values}


@pytest.fixture
def resolver() -> OwnershipResolver:
    return OwnershipResolver.from_text(
        "\n".join([
            "*.md @org/writers",
            "src/** @org/admins @org/eng",
            "lib/** @org/eng @org/admins",
            "vendor/",
        ])
    )


def test_group_files_partitions_exactly(resolver: OwnershipResolver) -> None:
    """Test every file lands in exactly one group keyed by its owners."""
    files = changed(
        "README.md", "src/a.js", "lib/b.js", "vendor/c.c", "Makefile", "docs/d.md"
    )

    groups = group_files(files, resolver)

    assert [g.key for g in groups] == [
        "@org/writers",
        "@org/admins,@org/eng",
        UNOWNED_KEY,
        ANY_REVIEWER_KEY,
    ]
    assert sorted(f.path for g in groups for f in g.files) == sorted(
        f.path for f in files
    )
    for group in groups:
        for changed_file in group.files:
            assert resolver.owners_for(changed_file.path) == group.owners


def test_group_files_merges_rules_with_same_owners(
    resolver: OwnershipResolver,
) -> None:
    """Test different rules with the same owner-set share a group."""
    groups = group_files(changed("src/a.js", "lib/b.js"), resolver)

    assert len(groups) == 1
    assert [f.path for f in groups[0].files] == ["src/a.js", "lib/b.js"]


def test_group_files_no_files(resolver: OwnershipResolver) -> None:
    assert group_files([], resolver) == []


def test_group_priority_sole_owner() -> None:
    """Test the sole unapproved owner gets the top priority."""
    group = OwnerGroup(key="@org/eng", owners=owners("@org/eng"))

    priority = group_priority(group, tokens("alice", "@org/eng"), set(), "alice", "carol")

    assert priority == PRIORITY_SOLE_OWNER


@pytest.mark.parametrize(
    ("group_owners", "approvals", "expected"),
    [
        (("@org/eng", "@org/qa"), (), PRIORITY_CO_OWNER),
        (("@org/eng", "@org/qa"), ("@org/qa",), PRIORITY_OWNER_APPROVED),
        (("@org/eng",), ("@org/eng",), PRIORITY_OWNER_APPROVED),
        (("@org/qa",), (), PRIORITY_UNAPPROVED),
        (("@org/qa",), ("@org/qa",), PRIORITY_APPROVED),
    ],
)
def test_group_priority(
    group_owners: tuple[str, ...], approvals: tuple[str, ...], expected: int
) -> None:
    """Test group ranks relative to a user on the eng team."""
    group = OwnerGroup(key=",".join(group_owners), owners=owners(*group_owners))

    priority = group_priority(
        group, tokens("alice", "@org/eng"), tokens(*approvals), "alice", "carol"
    )

    assert priority == expected


def test_group_priority_author_is_never_urgent() -> None:
    """Test the pull request author never gets an owner priority."""
    group = OwnerGroup(key="@org/eng", owners=owners("@org/eng"))

    priority = group_priority(group, tokens("carol", "@org/eng"), set(), "carol", "carol")

    assert priority == PRIORITY_UNAPPROVED


def test_group_priority_without_current_user() -> None:
    group = OwnerGroup(key="@org/eng", owners=owners("@org/eng"))

    assert group_priority(group, set(), set(), None, "carol") == PRIORITY_UNAPPROVED


def test_group_priority_any_reviewer() -> None:
    """Test the user counts as owner of the "any reviewer" group."""
    group = OwnerGroup(key=ANY_REVIEWER_KEY, owners=None)
    user_teams = tokens("alice", "@org/eng")

    assert group_priority(group, user_teams, set(), "alice", "carol") == (
        PRIORITY_SOLE_OWNER
    )
    assert group_priority(group, user_teams, tokens("bob"), "alice", "carol") == (
        PRIORITY_OWNER_APPROVED
    )


def test_group_priority_unowned_is_approved() -> None:
    group = OwnerGroup(key=UNOWNED_KEY, owners=frozenset())

    assert group_priority(group, tokens("alice"), set(), "alice", "carol") == (
        PRIORITY_APPROVED
    )


def test_rank_groups_sole_owner_sorts_first() -> None:
    """Test the sole-owner group sorts first whatever its file count."""
    big = OwnerGroup(
        key="@org/qa", owners=owners("@org/qa"), files=changed("a", "b", "c")
    )
    small = OwnerGroup(key="@org/eng", owners=owners("@org/eng"), files=changed("d"))

    ranked = rank_groups([big, small], tokens("alice", "@org/eng"), set(), "alice", "carol")

    assert ranked == [small, big]
    assert small.priority == PRIORITY_SOLE_OWNER
    assert big.priority == PRIORITY_UNAPPROVED
    assert not small.approved


def test_sort_groups_by_priority_then_file_count() -> None:
    """Test sorting is stable for equal priority and file count."""
    first = OwnerGroup(key="a", priority=3, files=changed("a1"))
    second = OwnerGroup(key="b", priority=3, files=changed("b1"))
    larger = OwnerGroup(key="c", priority=3, files=changed("c1", "c2"))
    urgent = OwnerGroup(key="d", priority=1, files=changed("d1"))

    assert [g.key for g in sort_groups([first, second, larger, urgent])] == [
        "d",
        "c",
        "a",
        "b",
    ]


def test_approval_status_counts_owned_groups_only() -> None:
    """Test unowned and "any reviewer" groups only add to total_files."""
    groups = [
        OwnerGroup(key="@org/eng", owners=owners("@org/eng"), approved=True, files=changed("a")),
        OwnerGroup(key="@org/qa", owners=owners("@org/qa"), files=changed("b", "c")),
        OwnerGroup(key=UNOWNED_KEY, owners=frozenset(), approved=True, files=changed("d")),
        OwnerGroup(key=ANY_REVIEWER_KEY, owners=None, files=changed("e")),
    ]

    status = approval_status(groups)

    assert (status.received, status.required, status.total_files) == (1, 2, 5)
    assert not status.fully_approved


def test_owner_flags() -> None:
    groups = [
        OwnerGroup(key="@org/eng,@org/qa", owners=owners("@org/eng", "@org/qa")),
        OwnerGroup(key=ANY_REVIEWER_KEY, owners=None),
    ]

    flags = owner_flags(groups, tokens("alice", "@org/eng"), tokens("@org/qa"))

    assert set(flags) == {"@org/eng", "@org/qa"}
    assert flags[OwnerToken("@org/eng")].covered_by_current_user
    assert not flags[OwnerToken("@org/eng")].approved
    assert flags[OwnerToken("@org/qa")].approved
    assert not flags[OwnerToken("@org/qa")].covered_by_current_user


def test_sort_owners_for_display() -> None:
    """Test owners covering the user come first."""
    ordered = sort_owners_for_display(
        [OwnerToken("@org/a"), OwnerToken("@org/b"), OwnerToken("@org/c")],
        tokens("@org/c"),
    )

    assert ordered == ["@org/c", "@org/a", "@org/b"]


def test_any_reviewer_approvers() -> None:
    assert any_reviewer_approvers(tokens("bob", "@org/eng", "alice")) == [
        "alice",
        "bob",
    ]


def test_commenter_role(resolver: OwnershipResolver) -> None:
    """Test comment authors are classified against the files they touch."""
    person_teams = {
        "bob": tokens("bob", "@org/eng"),
        "erin": tokens("erin", "@org/writers"),
    }
    files = changed("src/a.js", "README.md")

    assert commenter_role("carol", "carol", resolver, person_teams, files) == (
        CommenterRole.AUTHOR
    )
    assert commenter_role("bob", "carol", resolver, person_teams, files) == (
        CommenterRole.OWNER
    )
    assert commenter_role("zoe", "carol", resolver, person_teams, files) == (
        CommenterRole.NON_OWNER
    )
    assert commenter_role(
        "bob", "carol", resolver, person_teams, path="README.md"
    ) == CommenterRole.NON_OWNER
    assert commenter_role(
        "erin", "carol", resolver, person_teams, path="README.md"
    ) == CommenterRole.OWNER


def test_commenter_role_without_files(resolver: OwnershipResolver) -> None:
    """Test without a file list any rule makes the commenter an owner."""
    person_teams = {"erin": tokens("erin", "@org/writers")}

    assert commenter_role("erin", "carol", resolver, person_teams) == (
        CommenterRole.OWNER
    )
    assert commenter_role("zoe", "carol", resolver, person_teams) == (
        CommenterRole.NON_OWNER
    )
