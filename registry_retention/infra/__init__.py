"""
Infrastructure layer for registry-retention.

Contains abstractions for external systems:
- DockerHubClient: Docker Hub API access (login, list tags, delete tag)

These provide clean interfaces that can be mocked for testing.
"""

from .dockerhub_client import DockerHubClient, normalize_repository

__all__ = [
    'DockerHubClient',
    'normalize_repository',
]
