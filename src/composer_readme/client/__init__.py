"""Async HTTP clients for Packagist and GitHub."""

from composer_readme.client.base import BaseAPIClient
from composer_readme.client.github import GitHubClient, RateLimitStatus, parse_repository_url
from composer_readme.client.packagist import PackagistClient

__all__ = [
    "BaseAPIClient",
    "GitHubClient",
    "PackagistClient",
    "RateLimitStatus",
    "parse_repository_url",
]
