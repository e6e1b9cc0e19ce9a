"""Minimal GitHub REST client for workflow artifacts and release assets.

Only the handful of endpoints the fetch and upload commands need are wrapped.
Every non-success response is fatal: there is no retry or backoff, and the
caller sees a :class:`~release_distributions.errors.GitHubAPIError`.
"""

from __future__ import annotations

import concurrent.futures as cf
import dataclasses
import logging
import typing as typ

import httpx

from .errors import GitHubAPIError, ReleaseNotFoundError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

__all__ = [
    "DEFAULT_API_URL",
    "Artifact",
    "GitHubClient",
    "Release",
    "WorkflowRun",
]

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
_API_VERSION = "2022-11-28"
_USER_AGENT = "release-distributions"
_PER_PAGE = 100
_TIMEOUT = 30.0
_ERROR_DETAIL_LIMIT = 1024

JsonObject: typ.TypeAlias = dict[str, typ.Any]


@dataclasses.dataclass(frozen=True, slots=True)
class WorkflowRun:
    """Single execution of a workflow."""

    id: int
    head_sha: str
    event: str
    status: str
    artifacts_url: str

    @classmethod
    def from_payload(cls, payload: JsonObject) -> WorkflowRun:
        """Build a run from a ``/actions/workflows/{id}/runs`` entry."""
        return cls(
            id=int(payload["id"]),
            head_sha=str(payload["head_sha"]),
            event=str(payload.get("event", "")),
            status=str(payload.get("status", "")),
            artifacts_url=str(payload["artifacts_url"]),
        )


@dataclasses.dataclass(frozen=True, slots=True)
class Artifact:
    """Artifact bundle uploaded by a workflow run."""

    id: int
    name: str
    archive_download_url: str
    size_in_bytes: int = 0
    expired: bool = False
    expires_at: str | None = None

    @classmethod
    def from_payload(cls, payload: JsonObject) -> Artifact:
        """Build an artifact from an ``artifacts`` list entry."""
        return cls(
            id=int(payload["id"]),
            name=str(payload["name"]),
            archive_download_url=str(payload["archive_download_url"]),
            size_in_bytes=int(payload.get("size_in_bytes") or 0),
            expired=bool(payload.get("expired", False)),
            expires_at=payload.get("expires_at"),
        )


@dataclasses.dataclass(frozen=True, slots=True)
class Release:
    """GitHub release receiving uploaded assets."""

    id: int
    tag_name: str
    upload_url: str

    @classmethod
    def from_payload(cls, payload: JsonObject) -> Release:
        """Build a release from a ``/releases/tags/{tag}`` response."""
        return cls(
            id=int(payload["id"]),
            tag_name=str(payload["tag_name"]),
            upload_url=str(payload["upload_url"]),
        )


def _truncate_text(value: str, limit: int = _ERROR_DETAIL_LIMIT) -> str:
    if len(value) <= limit:
        return value
    return value[:limit] + "…"


def _error_detail(response: httpx.Response) -> str:
    """Return a short description of a failed response."""
    return _truncate_text(response.text.strip() or response.reason_phrase or "")


def _json_body(response: httpx.Response, action: str) -> JsonObject:
    """Decode a JSON object body, treating anything else as an API failure."""
    try:
        payload = response.json()
    except ValueError as exc:
        message = f"GitHub API returned an invalid JSON body to {action}: {exc}"
        raise GitHubAPIError(message, status_code=response.status_code) from exc
    if not isinstance(payload, dict):
        message = f"GitHub API returned a non-object JSON body to {action}"
        raise GitHubAPIError(message, status_code=response.status_code)
    return payload


def _raise_for_status(response: httpx.Response, action: str) -> None:
    if response.is_success:
        return
    status = response.status_code
    detail = _error_detail(response)
    message = f"GitHub API request to {action} failed with status {status}"
    if detail:
        message = f"{message}: {detail}"
    raise GitHubAPIError(message, status_code=status)


class GitHubClient:
    """Authenticated client for the GitHub REST API.

    Parameters
    ----------
    token
        Personal access or workflow token. It is only ever placed in the
        ``Authorization`` header.
    api_url
        Base URL of the REST API, for GitHub Enterprise hosts.
    transport
        Optional ``httpx`` transport, used by tests to stub the network.
    max_workers
        Upper bound on concurrent downloads in :meth:`download_all`.
    """

    def __init__(
        self,
        token: str,
        *,
        api_url: str = DEFAULT_API_URL,
        transport: httpx.BaseTransport | None = None,
        max_workers: int | None = None,
    ) -> None:
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": _API_VERSION,
            "User-Agent": _USER_AGENT,
        }
        self._client = httpx.Client(
            base_url=api_url,
            headers=headers,
            timeout=httpx.Timeout(_TIMEOUT),
            transport=transport,
        )
        self._max_workers = max_workers

    def __enter__(self) -> typ.Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: object,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Release the underlying connection pool."""
        self._client.close()

    def _request(
        self,
        method: str,
        url: str,
        *,
        action: str,
        **kwargs: typ.Any,  # noqa: ANN401
    ) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.RequestError as exc:
            message = f"Failed to reach GitHub API to {action}: {exc!s}"
            raise GitHubAPIError(message) from exc
        _raise_for_status(response, action)
        return response

    def _paginate(
        self, url: str, key: str, *, action: str, params: dict[str, str] | None = None
    ) -> typ.Iterator[JsonObject]:
        """Yield every entry of ``key`` across ``Link: rel="next"`` pages."""
        next_url: str | None = url
        query: dict[str, str] | None = {**(params or {}), "per_page": str(_PER_PAGE)}
        while next_url:
            response = self._request("GET", next_url, action=action, params=query)
            yield from _json_body(response, action).get(key) or []
            next_url = response.links.get("next", {}).get("url")
            # The ``next`` link already carries the query string.
            query = None

    def list_workflows(self, org: str, repo: str) -> list[int]:
        """Return the ids of every workflow defined in ``org/repo``."""
        return [
            int(workflow["id"])
            for workflow in self._paginate(
                f"/repos/{org}/{repo}/actions/workflows",
                "workflows",
                action="list workflows",
            )
        ]

    def iter_runs(
        self,
        org: str,
        repo: str,
        workflow_id: int,
        *,
        event: str,
        status: str,
        head_sha: str | None = None,
    ) -> typ.Iterator[WorkflowRun]:
        """Yield runs of ``workflow_id`` filtered by ``event`` and ``status``.

        Pages are requested only as the iterator advances, so a caller that
        stops at the first match never walks the rest of the run history.
        ``head_sha`` narrows the listing to runs of one commit.
        """
        params = {"event": event, "status": status}
        if head_sha is not None:
            params["head_sha"] = head_sha
        for run in self._paginate(
            f"/repos/{org}/{repo}/actions/workflows/{workflow_id}/runs",
            "workflow_runs",
            action=f"list runs of workflow {workflow_id}",
            params=params,
        ):
            yield WorkflowRun.from_payload(run)

    def list_artifacts(self, artifacts_url: str) -> list[Artifact]:
        """Return the artifacts listed at a run's ``artifacts_url``."""
        return [
            Artifact.from_payload(artifact)
            for artifact in self._paginate(
                artifacts_url, "artifacts", action="list artifacts"
            )
        ]

    def download_bytes(self, url: str) -> bytes:
        """Return the body at ``url``, following the redirect to blob storage."""
        logger.debug("GET %s", url)
        response = self._request(
            "GET", url, action="download artifact", follow_redirects=True
        )
        return response.content

    def download_all(self, urls: cabc.Sequence[str]) -> list[bytes]:
        """Download every ``url`` concurrently.

        Parameters
        ----------
        urls
            Archive download URLs.

        Returns
        -------
        list[bytes]
            Response bodies in the same order as ``urls``.

        Raises
        ------
        GitHubAPIError
            From the first download that fails. Downloads that have not yet
            started are cancelled and no partial result is returned.
        """
        if not urls:
            return []
        workers = self._max_workers or len(urls)
        with cf.ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(self.download_bytes, url) for url in urls]
            done, _ = cf.wait(futures, return_when=cf.FIRST_EXCEPTION)
            for future in done:
                if (exc := future.exception()) is not None:
                    for pending in futures:
                        pending.cancel()
                    raise exc
            return [future.result() for future in futures]

    def get_release_by_tag(self, org: str, repo: str, tag: str) -> Release:
        """Return the release published for ``tag``.

        Raises
        ------
        ReleaseNotFoundError
            If GitHub reports no release for ``tag``.
        GitHubAPIError
            For any other non-success response.
        """
        try:
            response = self._request(
                "GET",
                f"/repos/{org}/{repo}/releases/tags/{tag}",
                action=f"fetch release {tag}",
            )
        except GitHubAPIError as exc:
            if exc.status_code == httpx.codes.NOT_FOUND:
                raise ReleaseNotFoundError(tag) from exc
            raise
        return Release.from_payload(_json_body(response, f"fetch release {tag}"))

    def upload_asset(
        self,
        upload_url: str,
        filename: str,
        data: bytes,
        *,
        content_type: str,
    ) -> None:
        """POST ``data`` to ``upload_url``, which already names the asset."""
        self._request(
            "POST",
            upload_url,
            action=f"upload {filename}",
            content=data,
            headers={
                "Content-Length": str(len(data)),
                "Content-Type": content_type,
            },
        )
