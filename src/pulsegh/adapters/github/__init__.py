"""
GitHub Adapter - Remote query gateway for GitHub Projects and repositories.
"""

from pulsegh.adapters.github.client import GitHubApiClient
from pulsegh.adapters.github.gateway import GitHubQueryGateway
from pulsegh.adapters.github.queries import GraphQLQuery


__all__ = ["GitHubApiClient", "GitHubQueryGateway", "GraphQLQuery"]
