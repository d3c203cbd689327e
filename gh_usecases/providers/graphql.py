"""Minimal GraphQL-over-HTTP transport for the GitHub API.

Failures are raised as ``ApiError`` with a structured ``ErrorKind`` derived
from the HTTP status or the GraphQL error ``type``. Failures that carry no
transport-level meaning (for example GitHub's ``UNPROCESSABLE`` when a
repository name is taken) take the ``failure_kind`` chosen by the caller.
"""

from typing import Any

import httpx
import structlog

from gh_usecases.enums import ErrorKind
from gh_usecases.exceptions import ApiError, NetworkError

log = structlog.get_logger(__name__)

GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"

_GRAPHQL_TYPE_KINDS = {
    "FORBIDDEN": ErrorKind.PERMISSION,
    "INSUFFICIENT_SCOPES": ErrorKind.PERMISSION,
    "UNAUTHORIZED": ErrorKind.AUTHENTICATION,
    "NOT_FOUND": ErrorKind.NOT_FOUND,
    "RATE_LIMITED": ErrorKind.RATE_LIMIT,
}

# Schema validation failures report an extensions.code instead of a type
_MALFORMED_CODES = {
    "undefinedField",
    "undefinedType",
    "argumentLiteralsIncompatible",
    "missingRequiredArguments",
    "variableMismatch",
    "parseError",
}


def kind_for_status(status_code: int, body: str = "", fallback: ErrorKind = ErrorKind.UNKNOWN) -> ErrorKind:
    """Map an HTTP error status to an error kind."""
    if status_code == 401:
        return ErrorKind.AUTHENTICATION
    if status_code == 403:
        # GitHub signals secondary rate limits with 403
        return ErrorKind.RATE_LIMIT if "rate limit" in body.lower() else ErrorKind.PERMISSION
    if status_code == 404:
        return ErrorKind.NOT_FOUND
    if status_code == 429:
        return ErrorKind.RATE_LIMIT
    if status_code in (400, 422):
        return ErrorKind.MALFORMED_REQUEST
    return fallback


def kind_for_graphql_error(error: dict[str, Any], fallback: ErrorKind = ErrorKind.UNKNOWN) -> ErrorKind:
    """Map one entry of a GraphQL ``errors`` array to an error kind."""
    error_type = error.get("type")
    if error_type in _GRAPHQL_TYPE_KINDS:
        return _GRAPHQL_TYPE_KINDS[error_type]
    code = (error.get("extensions") or {}).get("code")
    if code in _MALFORMED_CODES:
        return ErrorKind.MALFORMED_REQUEST
    return fallback


class GraphQLClient:
    """Authenticated GraphQL client bound to one token.

    Example:
        >>> client = GraphQLClient(token)
        >>> data = await client.request("query { viewer { login } }")
        >>> data["viewer"]["login"]
        'octocat'
    """

    def __init__(
        self,
        token: str,
        url: str = GITHUB_GRAPHQL_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"bearer {token.strip()}",
                "Content-Type": "application/json",
                "Accept": "application/vnd.github+json",
                "User-Agent": "gh-usecases",
            },
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        failure_kind: ErrorKind = ErrorKind.UNKNOWN,
    ) -> dict[str, Any]:
        """Execute ``query`` and return its ``data`` object.

        Args:
            query: GraphQL document
            variables: Variables for the document
            failure_kind: Kind assigned to failures with no transport meaning

        Raises:
            NetworkError: The host could not be reached.
            ApiError: The request was rejected or returned GraphQL errors.
        """
        try:
            response = await self._client.post(self.url, json={"query": query, "variables": variables or {}})
        except httpx.TransportError as e:
            log.warning("graphql_transport_failed", error=str(e))
            raise NetworkError(f"Could not connect to {self.url}: {e}") from e

        if response.status_code >= 400:
            body = response.text
            message = _extract_message(response) or response.reason_phrase or "GraphQL request failed"
            kind = kind_for_status(response.status_code, body, fallback=failure_kind)
            log.warning("graphql_http_error", status_code=response.status_code, kind=kind.value)
            raise ApiError(message, kind=kind, status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError as e:
            raise ApiError("GraphQL response is not valid JSON", kind=failure_kind) from e

        errors = payload.get("errors") or []
        if errors:
            first = errors[0]
            kind = kind_for_graphql_error(first, fallback=failure_kind)
            message = "; ".join(error.get("message", "Unknown GraphQL error") for error in errors)
            log.warning("graphql_errors", kind=kind.value, error_type=first.get("type"), count=len(errors))
            raise ApiError(message, kind=kind, error_type=first.get("type"))

        data = payload.get("data")
        if not isinstance(data, dict):
            raise ApiError("GraphQL response has no data", kind=failure_kind)
        return data


def _extract_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str):
            return message
    return None
