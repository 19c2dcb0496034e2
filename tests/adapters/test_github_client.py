"""
Tests for GitHubApiClient.

Tests GraphQL and REST calls with a mocked requests session.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from pulsegh.adapters.github.client import GitHubApiClient
from pulsegh.adapters.github.queries import GraphQLQuery
from pulsegh.core.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    GatewayError,
    GraphQLQueryError,
    ResourceNotFoundError,
    TransportError,
)


def make_response(status_code=200, json_data=None, text=None, links=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.json.return_value = json_data
    response.text = text if text is not None else ("{}" if json_data is not None else "")
    response.links = links or {}
    response.url = "https://api.github.com/test"
    return response


@pytest.fixture
def mock_session():
    """Create a mock requests session."""
    with patch("pulsegh.adapters.github.client.requests.Session") as mock:
        session_instance = MagicMock()
        mock.return_value = session_instance
        yield session_instance


@pytest.fixture
def client(mock_session):
    return GitHubApiClient(token="ghp_test")


@pytest.fixture
def query():
    return GraphQLQuery(
        name="workspace_id",
        document="query($login: String!) { organization(login: $login) { id } }",
        variables={"login": "acme"},
        path=("organization", "id"),
    )


# =============================================================================
# Initialization
# =============================================================================


class TestInit:
    def test_auth_header(self, mock_session):
        GitHubApiClient(token="ghp_secret")
        headers = mock_session.headers.update.call_args[0][0]
        assert headers["Authorization"] == "Bearer ghp_secret"
        assert headers["Accept"] == "application/vnd.github+json"

    def test_api_url_trailing_slash(self, mock_session):
        client = GitHubApiClient(token="t", api_url="https://ghe.example.com/api/v3/")
        assert client.api_url == "https://ghe.example.com/api/v3"

    def test_context_manager_closes_session(self, mock_session):
        with GitHubApiClient(token="t"):
            pass
        mock_session.close.assert_called_once()


# =============================================================================
# GraphQL
# =============================================================================


class TestGraphQL:
    def test_returns_data(self, client, mock_session, query):
        mock_session.request.return_value = make_response(
            json_data={"data": {"organization": {"id": "O_1"}}}
        )

        data = client.graphql(query)

        assert data == {"organization": {"id": "O_1"}}
        method, url = mock_session.request.call_args[0]
        kwargs = mock_session.request.call_args[1]
        assert method == "POST"
        assert url == "https://api.github.com/graphql"
        assert kwargs["json"] == {"query": query.document, "variables": {"login": "acme"}}
        assert kwargs["headers"] == {"X-Github-Next-Global-ID": "1"}
        assert kwargs["timeout"] == 30.0

    def test_errors_array_raises(self, client, mock_session, query):
        mock_session.request.return_value = make_response(
            json_data={"errors": [{"message": "Field 'x' doesn't exist"}]}
        )

        with pytest.raises(GraphQLQueryError) as exc_info:
            client.graphql(query)

        assert "Field 'x' doesn't exist" in str(exc_info.value)
        assert exc_info.value.errors == [{"message": "Field 'x' doesn't exist"}]

    def test_not_found_error_type(self, client, mock_session, query):
        mock_session.request.return_value = make_response(
            json_data={
                "data": {"organization": None},
                "errors": [{"type": "NOT_FOUND", "message": "Could not resolve to an Organization"}],
            }
        )

        with pytest.raises(ResourceNotFoundError):
            client.graphql(query)

    def test_missing_data_is_empty(self, client, mock_session, query):
        mock_session.request.return_value = make_response(json_data={"data": None})
        assert client.graphql(query) == {}

    def test_non_object_body(self, client, mock_session, query):
        mock_session.request.return_value = make_response(json_data=["unexpected"])
        with pytest.raises(GatewayError):
            client.graphql(query)


# =============================================================================
# REST
# =============================================================================


class TestRest:
    def test_relative_endpoint(self, client, mock_session):
        mock_session.request.return_value = make_response(json_data={"login": "octocat"})

        assert client.get("user") == {"login": "octocat"}
        assert mock_session.request.call_args[0] == ("GET", "https://api.github.com/user")

    def test_empty_body(self, client, mock_session):
        mock_session.request.return_value = make_response(status_code=204, text="")
        assert client.get("user") == {}

    def test_invalid_json(self, client, mock_session):
        response = make_response(text="<html>")
        response.json.side_effect = ValueError("no json")
        mock_session.request.return_value = response

        with pytest.raises(GatewayError, match="Invalid JSON"):
            client.get("user")

    def test_paginated_follows_next_link(self, client, mock_session):
        mock_session.request.side_effect = [
            make_response(
                json_data=[{"name": "api"}, {"name": "web"}],
                links={"next": {"url": "https://api.github.com/orgs/acme/repos?page=2"}},
            ),
            make_response(json_data=[{"name": "docs"}]),
        ]

        repos = client.get_paginated("orgs/acme/repos")

        assert [r["name"] for r in repos] == ["api", "web", "docs"]
        first, second = mock_session.request.call_args_list
        assert first[1]["params"] == {"per_page": 100}
        assert second[0][1] == "https://api.github.com/orgs/acme/repos?page=2"
        assert second[1]["params"] is None

    def test_paginated_extra_params(self, client, mock_session):
        mock_session.request.return_value = make_response(json_data=[])

        client.get_paginated("user/repos", params={"affiliation": "owner"})

        assert mock_session.request.call_args[1]["params"] == {"affiliation": "owner", "per_page": 100}

    def test_paginated_page_cap(self, client, mock_session):
        client.MAX_REST_PAGES = 2
        mock_session.request.return_value = make_response(
            json_data=[{"name": "x"}],
            links={"next": {"url": "https://api.github.com/next"}},
        )

        assert len(client.get_paginated("orgs/acme/repos")) == 2
        assert mock_session.request.call_count == 2


# =============================================================================
# Error Mapping
# =============================================================================


class TestErrorMapping:
    @pytest.mark.parametrize(
        ("status", "exc_class"),
        [
            (401, AuthenticationError),
            (403, AccessDeniedError),
            (404, ResourceNotFoundError),
            (500, GatewayError),
            (502, GatewayError),
        ],
    )
    def test_status_codes(self, client, mock_session, status, exc_class):
        mock_session.request.return_value = make_response(status_code=status, text="error body")

        with pytest.raises(exc_class) as exc_info:
            client.get("repos/acme/api")

        assert exc_info.value.status_code == status
        assert exc_info.value.resource == "https://api.github.com/repos/acme/api"

    def test_timeout(self, client, mock_session):
        mock_session.request.side_effect = requests.exceptions.Timeout("slow")

        with pytest.raises(TransportError, match="timed out"):
            client.get("user")

    def test_connection_error(self, client, mock_session):
        mock_session.request.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(TransportError) as exc_info:
            client.get("user")

        assert isinstance(exc_info.value.cause, requests.exceptions.ConnectionError)

    def test_no_retry(self, client, mock_session):
        mock_session.request.return_value = make_response(status_code=502, text="bad gateway")

        with pytest.raises(GatewayError):
            client.get("user")

        assert mock_session.request.call_count == 1
