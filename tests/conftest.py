"""Shared fixtures for codeowners_review tests."""

from collections.abc import Callable

import pytest

from codeowners_review.fixture_source import Fixture
from codeowners_review.models import PullRequestContext

CODEOWNERS = """\
# Default owners
*               @acme/admins

src/**          @acme/admins @acme/engineers
docs/           @acme/writers
tools/          carol
"""


@pytest.fixture
def pr_context() -> PullRequestContext:
    return PullRequestContext(
        org="acme",
        repo="widgets",
        number=42,
        base_branch="main",
        url="https://github.com/acme/widgets/pull/42/files",
        current_user="alice",
        pr_author="carol",
    )


@pytest.fixture
def fixture_builder(
    pr_context: PullRequestContext,
) -> Callable[..., Fixture]:
    """Build a Fixture, overriding any of its fields."""

    def builder(**overrides: object) -> Fixture:
        data: dict[str, object] = {
            "pull_request": pr_context,
            "codeowners": CODEOWNERS,
            "files": ["README.md", "src/app.py", "src/lib/util.py", "docs/index.md"],
            "reviews": {"bob": True, "dave": False},
            "teams": {
                "admins": ["alice"],
                "engineers": ["bob", "dave"],
                "writers": ["erin"],
            },
        }
        data.update(overrides)
        return Fixture.model_validate(data)

    return builder
