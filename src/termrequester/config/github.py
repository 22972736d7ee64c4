"""GitHub issue tracker configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import optional_env_var, require_env_vars
from .errors import ConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .storage import get_storage_config

GITHUB_API_BASE_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
GITHUB_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class GitHubLabels:
    """Labels the review team puts on issues to record the outcome."""

    request: str = "new term"
    accepted: str = "accepted"
    rejected: str = "rejected"
    synonym: str = "synonym"
    published: str = "published"


@dataclass(frozen=True, slots=True)
class GitHubConfig:
    token: str
    owner: str
    repository: str
    resilience: ResilienceConfig
    labels: GitHubLabels = field(default_factory=GitHubLabels)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repository}"


def parse_repository(value: str) -> tuple[str, str]:
    owner, sep, name = value.strip().partition("/")
    if not sep or not owner or not name or "/" in name:
        raise ConfigurationError(f"Expected GITHUB_REPOSITORY as 'owner/name', got {value!r}")
    return owner, name


def _cache_config(mode: str) -> CacheConfig | None:
    match mode:
        case "off":
            return None
        case "memory":
            return CacheConfig(backend="memory")
        case "sqlite":
            return CacheConfig(
                backend="sqlite",
                sqlite_path=str(get_storage_config().http_cache_path()),
            )
        case _:
            raise ConfigurationError(f"Unsupported GITHUB_HTTP_CACHE value: {mode!r}")


def get_github_config(*, resilience: ResilienceConfig | None = None) -> GitHubConfig:
    values = require_env_vars(("GITHUB_TOKEN", "GITHUB_REPOSITORY"))
    owner, repository = parse_repository(values["GITHUB_REPOSITORY"])
    defaults = GitHubLabels()
    labels = GitHubLabels(
        request=optional_env_var("GITHUB_REQUEST_LABEL", defaults.request),
        accepted=optional_env_var("GITHUB_ACCEPTED_LABEL", defaults.accepted),
        rejected=optional_env_var("GITHUB_REJECTED_LABEL", defaults.rejected),
        synonym=optional_env_var("GITHUB_SYNONYM_LABEL", defaults.synonym),
        published=optional_env_var("GITHUB_PUBLISHED_LABEL", defaults.published),
    )
    return GitHubConfig(
        token=values["GITHUB_TOKEN"],
        owner=owner,
        repository=repository,
        labels=labels,
        resilience=resilience
        or ResilienceConfig(
            name="github",
            base_url=GITHUB_API_BASE_URL,
            timeout_seconds=GITHUB_TIMEOUT_SECONDS,
            # search endpoints allow 30 authenticated calls per minute
            ratelimit=RateLimit(max_calls=30, per_seconds=60.0),
            retry=RetryPolicy(total=4),
            cache=_cache_config(optional_env_var("GITHUB_HTTP_CACHE", "off")),
            default_headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {values['GITHUB_TOKEN']}",
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
            },
        ),
    )
