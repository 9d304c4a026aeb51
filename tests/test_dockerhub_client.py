"""
Tests for the Docker Hub client.

Tests cover:
- Repository name normalization
- Login token handling and credential rejection
- Tag listing across pages
- Tag deletion and error mapping
- Network failures
"""

from unittest.mock import MagicMock

import pytest
import requests

from registry_retention.errors import AuthenticationError, RegistryError
from registry_retention.exit_codes import API_ERROR, AUTH_ERROR
from registry_retention.infra.dockerhub_client import DockerHubClient, normalize_repository


def response(status_code=200, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 300
    if isinstance(payload, Exception):
        resp.json.side_effect = payload
    else:
        resp.json.return_value = payload if payload is not None else {}
    return resp


PAGE_1 = {
    "count": 3,
    "next": "https://hub.docker.com/v2/repositories/org/app/tags?page=2&page_size=2",
    "results": [
        {"name": "v2", "tag_last_pushed": "2024-05-01T00:00:00Z",
         "tag_last_pulled": "2024-06-01T00:00:00Z", "images": [{"digest": "sha256:2"}]},
        {"name": "v1", "tag_last_pushed": "2024-01-01T00:00:00Z",
         "tag_last_pulled": None, "images": [{"digest": "sha256:1"}]},
    ],
}

PAGE_2 = {
    "count": 3,
    "next": None,
    "results": [
        {"name": "v0", "tag_last_pushed": "2023-01-01T00:00:00Z",
         "tag_last_pulled": "2023-02-01T00:00:00Z", "images": [{"digest": "sha256:0"}]},
    ],
}


@pytest.fixture
def client():
    client = DockerHubClient("org/app", page_size=2)
    client.session = MagicMock()
    client.session.headers = {}
    return client


class TestNormalizeRepository:
    @pytest.mark.parametrize("name,expected", [
        ("nginx", "library/nginx"),
        ("org/app", "org/app"),
        (" /org/app/ ", "org/app"),
    ])
    def test_normalize(self, name, expected):
        assert normalize_repository(name) == expected


class TestLogin:

    def test_sets_bearer_token(self, client):
        client.session.request.return_value = response(200, {"token": "jwt"})

        client.login("user", "secret")

        method, url = client.session.request.call_args.args
        assert method == "POST"
        assert url == "https://hub.docker.com/v2/users/login"
        assert client.session.request.call_args.kwargs["json"] == {"username": "user", "password": "secret"}
        assert client.session.headers["Authorization"] == "Bearer jwt"

    def test_rejected_credentials(self, client):
        client.session.request.return_value = response(401, {"detail": "Incorrect authentication credentials"})

        with pytest.raises(AuthenticationError) as exc_info:
            client.login("user", "wrong")
        assert exc_info.value.exit_code == AUTH_ERROR
        assert "Authorization" not in client.session.headers

    def test_missing_token(self, client):
        client.session.request.return_value = response(200, {})
        with pytest.raises(AuthenticationError):
            client.login("user", "secret")

    def test_server_error(self, client):
        client.session.request.return_value = response(500)
        with pytest.raises(RegistryError) as exc_info:
            client.login("user", "secret")
        assert exc_info.value.status_code == 500
        assert exc_info.value.exit_code == API_ERROR


class TestListTags:

    def test_follows_pages(self, client):
        client.session.request.side_effect = [response(200, PAGE_1), response(200, PAGE_2)]

        tags = client.list_tags()

        assert [t.name for t in tags] == ["v2", "v1", "v0"]
        first, second = client.session.request.call_args_list
        assert first.args == ("GET", "https://hub.docker.com/v2/repositories/org/app/tags")
        assert first.kwargs["params"] == {"page_size": 2}
        assert second.args == ("GET", PAGE_1["next"])
        assert second.kwargs["params"] is None

    def test_parses_tag_records(self, client):
        client.session.request.side_effect = [response(200, PAGE_2)]
        tag = client.list_tags()[0]
        assert tag.digests == frozenset({"sha256:0"})
        assert tag.last_pushed.year == 2023

    def test_empty_repository(self, client):
        client.session.request.return_value = response(200, {"count": 0, "next": None, "results": []})
        assert client.list_tags() == []

    def test_http_error(self, client):
        client.session.request.return_value = response(404, {"message": "not found"})
        with pytest.raises(RegistryError) as exc_info:
            client.list_tags()
        assert exc_info.value.status_code == 404

    def test_invalid_json(self, client):
        client.session.request.return_value = response(200, ValueError("no json"))
        with pytest.raises(RegistryError):
            client.list_tags()

    def test_network_failure(self, client):
        client.session.request.side_effect = requests.ConnectionError("connection refused")
        with pytest.raises(RegistryError) as exc_info:
            client.list_tags()
        assert "connection refused" in str(exc_info.value)


class TestDeleteTag:

    def test_delete(self, client):
        client.session.request.return_value = response(204)

        client.delete_tag("v1")

        client.session.request.assert_called_once_with(
            "DELETE", "https://hub.docker.com/v2/repositories/org/app/tags/v1/", timeout=30
        )

    def test_tag_name_is_quoted(self, client):
        client.session.request.return_value = response(204)
        client.delete_tag("a/b")
        assert client.session.request.call_args.args[1].endswith("/tags/a%2Fb/")

    def test_not_found(self, client):
        client.session.request.return_value = response(404)
        with pytest.raises(RegistryError) as exc_info:
            client.delete_tag("missing")
        assert exc_info.value.status_code == 404

    def test_forbidden(self, client):
        client.session.request.return_value = response(403)
        with pytest.raises(AuthenticationError):
            client.delete_tag("v1")


class TestClientConfig:

    def test_from_config(self):
        config = {"registry": {"base_url": "http://localhost:5000/", "timeout_seconds": 5, "page_size": 10}}
        client = DockerHubClient.from_config("nginx", config)
        assert client.base_url == "http://localhost:5000"
        assert client.timeout == 5
        assert client.page_size == 10
        assert client.tags_url == "http://localhost:5000/v2/repositories/library/nginx/tags"

    def test_context_manager_closes_session(self):
        with DockerHubClient("org/app") as client:
            client.session = MagicMock()
        client.session.close.assert_called_once()
