"""
Fetch layer for TagWeb.

Defines the two article queries the graph is built from, the request values
handed to the fetch dispatcher, and a small GraphQL client.

Queries:
- most recent N articles (no parameters, newest first)
- articles tagged X (one string parameter, same ordering)

Both return the batch shape consumed by tagweb.merger.normalize.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Protocol, runtime_checkable

import requests

logger = logging.getLogger(__name__)

ARTICLE_FIELDS = """
      __typename
      id
      title
      created
      url
      tags {
        __typename
        name
      }
      user {
        __typename
        username
        avatar
      }
"""

MOST_RECENT_QUERY = """
  query mostRecent($limit: Int) {
    articles(options: { limit: $limit, sort: { created: DESC } }) {%s    }
  }
""" % ARTICLE_FIELDS

ARTICLES_BY_TAG_QUERY = """
  query articlesByTag($tag: String, $limit: Int) {
    articles(
      where: { tags: { name: $tag } }
      options: { limit: $limit, sort: { created: DESC } }
    ) {%s    }
  }
""" % ARTICLE_FIELDS

RECENT_LIMIT = 30
TAG_LIMIT = 10

REQUEST_TIMEOUT = 30


class FetchFailure(Exception):
    """A query could not be completed. Carries the request and HTTP status when known."""
    def __init__(self, message: str, request: Optional["FetchRequest"] = None, status: Optional[int] = None):
        self.request = request
        self.status = status
        super().__init__(message)


@dataclass(frozen=True)
class FetchRequest:
    name: str
    query: str
    variables: Dict[str, Any] = field(default_factory=dict)


def most_recent_request(limit: int = RECENT_LIMIT) -> FetchRequest:
    return FetchRequest(name="mostRecent", query=MOST_RECENT_QUERY, variables={"limit": limit})


def articles_by_tag_request(tag: str, limit: int = TAG_LIMIT) -> FetchRequest:
    return FetchRequest(name="articlesByTag", query=ARTICLES_BY_TAG_QUERY, variables={"tag": tag, "limit": limit})


# Dispatcher contract: dispatch(request, on_completed, on_failed) returns
# immediately; exactly one of the callbacks fires later.
OnCompleted = Callable[[Dict[str, Any]], None]
OnFailed = Callable[[Exception], None]
FetchDispatcher = Callable[[FetchRequest, OnCompleted, OnFailed], None]


@runtime_checkable
class ArticleSource(Protocol):
    """Anything able to execute a FetchRequest and return the batch."""

    def execute(self, request: FetchRequest) -> Dict[str, Any]:
        ...


class GraphQLClient:
    """
    Minimal GraphQL-over-HTTP client built on requests.

    execute() posts {"query", "variables"} and returns the response's `data`.
    Transport errors, non-2xx responses and GraphQL `errors` all raise
    FetchFailure.
    """

    def __init__(self, endpoint: str, timeout: float = REQUEST_TIMEOUT, session: Optional[requests.Session] = None):
        self.endpoint = endpoint
        self.timeout = timeout
        self._session = session

    def _post(self, payload: Dict[str, Any]) -> requests.Response:
        if self._session is not None:
            return self._session.post(self.endpoint, json=payload, timeout=self.timeout)
        return requests.post(self.endpoint, json=payload, timeout=self.timeout)

    def execute(self, request: FetchRequest) -> Dict[str, Any]:
        logger.debug(f"Executing {request.name} with {request.variables}")
        try:
            response = self._post({"query": request.query, "variables": request.variables})
        except requests.RequestException as e:
            raise FetchFailure(f"{request.name} failed: {e}", request) from e

        if not 200 <= response.status_code < 300:
            raise FetchFailure(
                f"{request.name} failed with HTTP {response.status_code}",
                request,
                response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise FetchFailure(f"{request.name} returned invalid JSON", request, response.status_code) from e

        errors = body.get("errors")
        if errors:
            message = "; ".join(str(err.get("message", err)) for err in errors)
            raise FetchFailure(f"{request.name} returned errors: {message}", request, response.status_code)

        data = body.get("data") or {}
        logger.info(f"{request.name}: received {len(data.get('articles') or [])} articles")
        return data


def run_sync(source: ArticleSource) -> FetchDispatcher:
    """
    Build a dispatcher that executes requests immediately on the caller's thread.

    Useful for scripts and tests; the NiceGUI app dispatches in the background.
    """
    def dispatch(request: FetchRequest, on_completed: OnCompleted, on_failed: OnFailed) -> None:
        try:
            batch = source.execute(request)
        except FetchFailure as e:
            on_failed(e)
            return
        on_completed(batch)

    return dispatch
