"""Prometheus metrics for codeowners-review."""

from prometheus_client import Counter

cache_requests = Counter(
    "codeowners_review_cache_requests_total",
    "Single-slot cache lookups",
    labelnames=["cache", "result"],
)

roster_failures = Counter(
    "codeowners_review_roster_failures_total",
    "Team roster fetches degraded to a pseudo-team",
    labelnames=["org"],
)

malformed_rule_lines = Counter(
    "codeowners_review_malformed_rule_lines_total",
    "Ownership spec lines skipped as malformed",
)

resolution_passes = Counter(
    "codeowners_review_resolution_passes_total",
    "Resolution passes by outcome",
    labelnames=["outcome"],
)
