from __future__ import annotations

import pytest

from termrequester.config.github import GitHubConfig, GitHubLabels
from termrequester.config.http_resilience import ResilienceConfig


@pytest.fixture
def github_config() -> GitHubConfig:
    return GitHubConfig(
        token="test-token",  # noqa: S106
        owner="obophenotype",
        repository="term-requests",
        labels=GitHubLabels(),
        resilience=ResilienceConfig(
            name="github-test",
            base_url="https://api.github.test",
            cache=None,
            default_headers={"Authorization": "Bearer test-token"},
        ),
    )
