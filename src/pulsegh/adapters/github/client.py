"""
GitHub API Client - Low-level HTTP client for the GitHub GraphQL and REST APIs.

This handles the raw HTTP communication with GitHub.
The GitHubQueryGateway uses this to implement the QueryGatewayPort.

There is no retry loop: a failed request surfaces as a
GatewayError and the operation in progress stops.

GitHub API documentation:
https://docs.github.com/en/graphql
https://docs.github.com/en/rest
"""

import logging
from typing import Any

import requests
from requests.adapters import HTTPAdapter

from pulsegh.core.constants import DEFAULT_TIMEOUT, GITHUB_API_URL, GITHUB_GRAPHQL_URL
from pulsegh.core.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    GatewayError,
    GraphQLQueryError,
    ResourceNotFoundError,
    TransportError,
)

from .queries import GraphQLQuery


class GitHubApiClient:
    """
    Low-level GitHub API client.

    Handles authentication, request/response and error mapping.

    Features:
    - Token (Bearer) authentication
    - Global node ids (``X-Github-Next-Global-ID``) on GraphQL requests
    - Link-header pagination for REST collections
    - Connection pooling
    """

    API_VERSION = "2022-11-28"

    # Connection pool settings
    DEFAULT_POOL_CONNECTIONS = 10
    DEFAULT_POOL_MAXSIZE = 10

    # Hard stop for REST pagination
    MAX_REST_PAGES = 100

    def __init__(
        self,
        token: str,
        api_url: str = GITHUB_API_URL,
        graphql_url: str = GITHUB_GRAPHQL_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize the GitHub client.

        Args:
            token: GitHub token (PAT, fine-grained token or ``gh auth token``)
            api_url: REST API base URL
            graphql_url: GraphQL endpoint URL
            timeout: Request timeout in seconds
        """
        self.api_url = api_url.rstrip("/")
        self.graphql_url = graphql_url
        self.token = token
        self.timeout = timeout
        self.logger = logging.getLogger("GitHubApiClient")

        self.headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token}",
            "X-GitHub-Api-Version": self.API_VERSION,
        }

        self._session = requests.Session()
        self._session.headers.update(self.headers)

        adapter = HTTPAdapter(
            pool_connections=self.DEFAULT_POOL_CONNECTIONS,
            pool_maxsize=self.DEFAULT_POOL_MAXSIZE,
        )
        self._session.mount("https://", adapter)
        self._session.mount("http://", adapter)

    # -------------------------------------------------------------------------
    # Core Request Methods
    # -------------------------------------------------------------------------

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """
        Send one request and map failures to typed errors.

        Args:
            method: HTTP method
            url: Absolute URL, or an endpoint relative to the REST base
            **kwargs: Additional arguments for requests

        Returns:
            The successful response

        Raises:
            GatewayError: On any HTTP or transport failure
        """
        if not url.startswith("http"):
            url = f"{self.api_url}/{url.lstrip('/')}"

        kwargs.setdefault("timeout", self.timeout)

        try:
            response = self._session.request(method, url, **kwargs)
        except requests.exceptions.Timeout as e:
            raise TransportError(f"Request timed out: {method} {url}", resource=url, cause=e) from e
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"Connection failed: {method} {url}", resource=url, cause=e) from e

        self._raise_for_status(response, url)
        return response

    def graphql(self, query: GraphQLQuery) -> dict[str, Any]:
        """
        Execute a GraphQL query.

        Returns:
            The ``data`` object of the response

        Raises:
            GraphQLQueryError: If the response carries an ``errors`` array
            ResourceNotFoundError: If GitHub reports the node as missing
        """
        self.logger.debug(f"GraphQL {query.name} {dict(query.variables)}")
        response = self.request(
            "POST",
            self.graphql_url,
            json=query.payload(),
            headers={"X-Github-Next-Global-ID": "1"},
        )
        body = self._json(response)
        if not isinstance(body, dict):
            raise GatewayError(f"Unexpected GraphQL response for {query.name}", resource=query.name)

        errors = body.get("errors") or []
        if errors:
            messages = "; ".join(str(e.get("message", e)) for e in errors)
            if any(e.get("type") == "NOT_FOUND" for e in errors):
                raise ResourceNotFoundError(f"Not found ({query.name}): {messages}", resource=query.name)
            raise GraphQLQueryError(
                f"GraphQL query {query.name} failed: {messages}",
                errors=errors,
                resource=query.name,
            )

        data = body.get("data")
        return data if isinstance(data, dict) else {}

    def get(self, endpoint: str, **kwargs: Any) -> Any:
        """Perform a REST GET and return the decoded JSON."""
        return self._json(self.request("GET", endpoint, **kwargs))

    def get_paginated(
        self,
        endpoint: str,
        per_page: int = 100,
        params: dict[str, Any] | None = None,
    ) -> list[Any]:
        """
        GET every page of a REST collection, following ``Link: rel="next"``.

        ``params`` are sent with the first request only; later pages reuse
        the query string of the next link.

        Returns:
            All elements, in page order
        """
        results: list[Any] = []
        url: str | None = endpoint
        query: dict[str, Any] | None = {**(params or {}), "per_page": per_page}
        pages = 0

        while url and pages < self.MAX_REST_PAGES:
            response = self.request("GET", url, params=query)
            page = self._json(response)
            if isinstance(page, list):
                results.extend(page)
            pages += 1
            url = response.links.get("next", {}).get("url")
            # The next link already carries the query string.
            query = None

        return results

    # -------------------------------------------------------------------------
    # Response Handling
    # -------------------------------------------------------------------------

    def _raise_for_status(self, response: requests.Response, endpoint: str) -> None:
        """Convert HTTP errors to typed exceptions."""
        if response.ok:
            return

        status = response.status_code
        error_body = response.text[:500] if response.text else ""

        if status == 401:
            raise AuthenticationError(
                "GitHub authentication failed. Check your token.",
                resource=endpoint,
                status_code=status,
            )

        if status == 403:
            raise AccessDeniedError(
                f"Permission denied for {endpoint}. Check token scopes "
                "(repo, read:org, read:project).",
                resource=endpoint,
                status_code=status,
            )

        if status == 404:
            raise ResourceNotFoundError(f"Not found: {endpoint}", resource=endpoint, status_code=status)

        raise GatewayError(
            f"GitHub API error {status}: {error_body}",
            resource=endpoint,
            status_code=status,
        )

    def _json(self, response: requests.Response) -> Any:
        if not response.text:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise GatewayError(f"Invalid JSON from {response.url}", resource=response.url, cause=e) from e

    # -------------------------------------------------------------------------
    # Resource Cleanup
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Close the client and release connection pool resources."""
        self._session.close()
        self.logger.debug("Closed HTTP session")

    def __enter__(self) -> "GitHubApiClient":
        """Context manager entry."""
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: Any,
    ) -> None:
        """Context manager exit."""
        self.close()
