"""
Docker Hub API client infrastructure for registry-retention.

Provides the three registry operations the retention run needs:
- login: exchange username/password for a bearer token
- list_tags: fetch the full tag inventory of a repository (follows `next` pages)
- delete_tag: delete one tag

Failures are raised as RegistryError (AuthenticationError for rejected
credentials). No retries are attempted.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from ..domain import Tag
from ..errors import AuthenticationError, RegistryError

logger = logging.getLogger(__name__)

# Docker Hub API base URL
DOCKERHUB_API_BASE = "https://hub.docker.com"

# Default page size for tag listing
DEFAULT_PAGE_SIZE = 100


def normalize_repository(repository: str) -> str:
    """
    Normalize a repository name to namespace/name form.

    Official images have no namespace on the command line but live under
    "library/" in the API:
        nginx           -> library/nginx
        myorg/myimage   -> myorg/myimage
    """
    repository = repository.strip().strip('/')
    if '/' not in repository:
        return f"library/{repository}"
    return repository


class DockerHubClient:
    """
    Client for the Docker Hub v2 REST API.

    Example:
        client = DockerHubClient("myorg/myimage")
        client.login("user", "secret")
        for tag in client.list_tags():
            print(tag.name, tag.last_pushed)
    """

    def __init__(
        self,
        repository: str,
        base_url: str = DOCKERHUB_API_BASE,
        timeout: int = 30,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        """
        Initialize DockerHubClient.

        Args:
            repository: Repository name ("namespace/name" or an official image name)
            base_url: API base URL
            timeout: HTTP request timeout in seconds
            page_size: Tags requested per page when listing
        """
        self.repository = normalize_repository(repository)
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.page_size = page_size
        self.session = requests.Session()
        self.session.headers.update({
            'Accept': 'application/json',
            'User-Agent': 'registry-retention',
        })

    @classmethod
    def from_config(cls, repository: str, config: Dict[str, Any]) -> 'DockerHubClient':
        """Create a client using the `registry` section of the config."""
        registry = config.get('registry', {})
        return cls(
            repository,
            base_url=registry.get('base_url', DOCKERHUB_API_BASE),
            timeout=registry.get('timeout_seconds', 30),
            page_size=registry.get('page_size', DEFAULT_PAGE_SIZE),
        )

    @property
    def tags_url(self) -> str:
        return f"{self.base_url}/v2/repositories/{self.repository}/tags"

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise RegistryError(f"Docker Hub request failed: {e}") from e
        return response

    def _json(self, response: requests.Response) -> Dict[str, Any]:
        try:
            return response.json()
        except ValueError as e:
            raise RegistryError(f"Docker Hub returned invalid JSON: {e}", response.status_code) from e

    def login(self, username: str, password: str) -> None:
        """
        Authenticate and use the returned token for later calls.

        Raises:
            AuthenticationError: If the credentials are rejected
            RegistryError: On any other failure
        """
        response = self._request(
            'POST',
            f"{self.base_url}/v2/users/login",
            json={'username': username, 'password': password},
        )
        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"Docker Hub login failed for {username}", response.status_code
            )
        if not response.ok:
            raise RegistryError(
                f"Docker Hub login error {response.status_code}", response.status_code
            )

        token = self._json(response).get('token')
        if not token:
            raise AuthenticationError("Docker Hub login returned no token", response.status_code)

        self.session.headers['Authorization'] = f"Bearer {token}"
        logger.debug(f"Logged in to Docker Hub as {username}")

    def list_tags(self) -> List[Tag]:
        """
        Fetch every tag of the repository.

        Raises:
            RegistryError: If any page cannot be fetched
        """
        tags: List[Tag] = []
        url: Optional[str] = self.tags_url
        params: Optional[Dict[str, Any]] = {'page_size': self.page_size}

        while url:
            response = self._request('GET', url, params=params)
            if not response.ok:
                raise RegistryError(
                    f"Docker Hub API error {response.status_code} listing tags of {self.repository}",
                    response.status_code,
                )

            data = self._json(response)
            for record in data.get('results') or []:
                tags.append(Tag.from_api_response(record))

            # `next` already carries the query string
            url = data.get('next')
            params = None

        logger.debug(f"Docker Hub: found {len(tags)} tags in {self.repository}")
        return tags

    def delete_tag(self, name: str) -> None:
        """
        Delete one tag.

        Raises:
            RegistryError: If the registry refuses or the request fails
        """
        response = self._request('DELETE', f"{self.tags_url}/{quote(name, safe='')}/")
        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"not allowed to delete {self.repository}:{name}", response.status_code
            )
        if not response.ok:
            raise RegistryError(
                f"Docker Hub API error {response.status_code} deleting {self.repository}:{name}",
                response.status_code,
            )

    def close(self) -> None:
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
