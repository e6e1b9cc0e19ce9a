"""Tests for :mod:`release_distributions.github`."""

from __future__ import annotations

import threading

import httpx
import pytest

from release_distributions.errors import GitHubAPIError, ReleaseNotFoundError
from release_distributions.github import Artifact, GitHubClient, Release, WorkflowRun

from ._helpers import API, TEST_TOKEN, FakeGitHub

WORKFLOWS = f"{API}/repos/acme/builds/actions/workflows"


class TestPayloadParsing:
    """Tests for the from_payload constructors."""

    def test_workflow_run(self) -> None:
        """Runs keep the fields the fetch command needs."""
        run = WorkflowRun.from_payload(
            {
                "id": 7,
                "head_sha": "abc",
                "event": "push",
                "status": "completed",
                "artifacts_url": f"{API}/runs/7/artifacts",
                "name": "ignored",
            }
        )
        assert run == WorkflowRun(
            7, "abc", "push", "completed", f"{API}/runs/7/artifacts"
        )

    def test_artifact_defaults(self) -> None:
        """Optional artifact metadata falls back to defaults."""
        artifact = Artifact.from_payload(
            {"id": 1, "name": "linux", "archive_download_url": "https://x/zip"}
        )
        assert artifact.size_in_bytes == 0
        assert artifact.expired is False
        assert artifact.expires_at is None

    def test_release(self) -> None:
        """Releases keep their templated upload URL verbatim."""
        release = Release.from_payload(
            {"id": 3, "tag_name": "v1", "upload_url": "https://u/assets{?name,label}"}
        )
        assert release.upload_url == "https://u/assets{?name,label}"


class TestRequests:
    """Tests for request construction and error handling."""

    def test_sends_auth_headers(self, fake_github: FakeGitHub) -> None:
        """Every request carries the bearer token and API version."""
        fake_github.json("GET", WORKFLOWS, {"workflows": []})

        with fake_github.client() as client:
            client.list_workflows("acme", "builds")

        request = fake_github.requests[0]
        assert request.headers["Authorization"] == f"Bearer {TEST_TOKEN}"
        assert request.headers["Accept"] == "application/vnd.github+json"
        assert request.headers["X-GitHub-Api-Version"] == "2022-11-28"
        assert request.url.params["per_page"] == "100"

    def test_follows_pagination(self, fake_github: FakeGitHub) -> None:
        """Entries from every linked page are returned."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params.get("page") == "2":
                return httpx.Response(
                    200, json={"workflows": [{"id": 2}]}, request=request
                )
            return httpx.Response(
                200,
                json={"workflows": [{"id": 1}]},
                headers={"Link": f'<{WORKFLOWS}?per_page=100&page=2>; rel="next"'},
                request=request,
            )

        fake_github.add("GET", WORKFLOWS, handler)

        with fake_github.client() as client:
            assert client.list_workflows("acme", "builds") == [1, 2]
        assert len(fake_github.requests) == 2

    def test_iter_runs_filters(self, fake_github: FakeGitHub) -> None:
        """Event, status and commit filters are passed as query parameters."""
        url = f"{WORKFLOWS}/5/runs"
        fake_github.json("GET", url, {"workflow_runs": []})

        with fake_github.client() as client:
            runs = client.iter_runs(
                "acme", "builds", 5, event="push", status="success", head_sha="abc"
            )
            assert list(runs) == []

        params = fake_github.requests[0].url.params
        assert params["event"] == "push"
        assert params["status"] == "success"
        assert params["head_sha"] == "abc"

    def test_iter_runs_fetches_pages_on_demand(self, fake_github: FakeGitHub) -> None:
        """Later pages are only requested once earlier runs are consumed."""
        url = f"{WORKFLOWS}/5/runs"

        def handler(request: httpx.Request) -> httpx.Response:
            page = int(request.url.params.get("page", "1"))
            run = {"id": page, "head_sha": f"sha{page}", "artifacts_url": url}
            return httpx.Response(
                200,
                json={"workflow_runs": [run]},
                headers={"Link": f'<{url}?per_page=100&page={page + 1}>; rel="next"'},
                request=request,
            )

        fake_github.add("GET", url, handler)

        with fake_github.client() as client:
            runs = client.iter_runs("acme", "builds", 5, event="push", status="success")
            assert next(runs).id == 1
            assert len(fake_github.requests) == 1
            assert next(runs).id == 2
            assert len(fake_github.requests) == 2

    def test_invalid_json_body(self, fake_github: FakeGitHub) -> None:
        """A success response that is not JSON raises GitHubAPIError."""
        fake_github.add(
            "GET",
            WORKFLOWS,
            lambda request: httpx.Response(200, text="<html>", request=request),
        )

        with (
            fake_github.client() as client,
            pytest.raises(GitHubAPIError, match="invalid JSON body to list workflows"),
        ):
            client.list_workflows("acme", "builds")

    def test_non_object_json_body(self, fake_github: FakeGitHub) -> None:
        """A JSON array where an object is expected raises GitHubAPIError."""
        fake_github.json("GET", WORKFLOWS, [1, 2])

        with (
            fake_github.client() as client,
            pytest.raises(GitHubAPIError, match="non-object JSON body") as excinfo,
        ):
            client.list_workflows("acme", "builds")

        assert excinfo.value.status_code == 200

    def test_error_status_is_fatal(self, fake_github: FakeGitHub) -> None:
        """Non-success responses raise GitHubAPIError with the status."""
        fake_github.json("GET", WORKFLOWS, {"message": "boom"}, status=500)

        with (
            fake_github.client() as client,
            pytest.raises(GitHubAPIError, match="status 500") as excinfo,
        ):
            client.list_workflows("acme", "builds")

        assert excinfo.value.status_code == 500
        assert len(fake_github.requests) == 1

    def test_token_not_in_error_message(self, fake_github: FakeGitHub) -> None:
        """Error messages never echo the token."""
        fake_github.json("GET", WORKFLOWS, {"message": "Bad credentials"}, status=401)

        with (
            fake_github.client() as client,
            pytest.raises(GitHubAPIError) as excinfo,
        ):
            client.list_workflows("acme", "builds")

        assert TEST_TOKEN not in str(excinfo.value)

    def test_transport_error_is_wrapped(self) -> None:
        """Connection failures surface as GitHubAPIError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with (
            GitHubClient(TEST_TOKEN, transport=httpx.MockTransport(handler)) as client,
            pytest.raises(GitHubAPIError, match="Failed to reach") as excinfo,
        ):
            client.list_workflows("acme", "builds")

        assert excinfo.value.status_code is None


class TestDownloads:
    """Tests for download_bytes and download_all."""

    def test_follows_redirect(self, fake_github: FakeGitHub) -> None:
        """Archive downloads follow GitHub's redirect to blob storage."""
        fake_github.add(
            "GET",
            f"{API}/artifacts/1/zip",
            lambda request: httpx.Response(
                302, headers={"Location": "https://blob.test/1"}, request=request
            ),
        )
        fake_github.content("https://blob.test/1", b"bundle")

        with fake_github.client() as client:
            assert client.download_bytes(f"{API}/artifacts/1/zip") == b"bundle"

        blob_request = fake_github.requests_to("GET", "https://blob.test/1")[0]
        assert "Authorization" not in blob_request.headers

    def test_download_all_preserves_order(self, fake_github: FakeGitHub) -> None:
        """Results line up with the requested URLs."""
        urls = [f"{API}/artifacts/{index}/zip" for index in range(5)]
        for index, url in enumerate(urls):
            fake_github.content(url, f"bundle-{index}".encode())

        with fake_github.client() as client:
            bundles = client.download_all(urls)

        assert bundles == [f"bundle-{index}".encode() for index in range(5)]

    def test_download_all_runs_concurrently(self, fake_github: FakeGitHub) -> None:
        """All downloads are in flight at the same time."""
        urls = [f"{API}/artifacts/{index}/zip" for index in range(3)]
        barrier = threading.Barrier(len(urls), timeout=5)

        def handler(request: httpx.Request) -> httpx.Response:
            barrier.wait()
            return httpx.Response(200, content=b"ok", request=request)

        for url in urls:
            fake_github.add("GET", url, handler)

        with fake_github.client() as client:
            assert client.download_all(urls) == [b"ok"] * 3

    def test_download_all_fails_as_a_whole(self, fake_github: FakeGitHub) -> None:
        """One failed download fails the batch."""
        fake_github.content(f"{API}/artifacts/1/zip", b"ok")
        fake_github.content(f"{API}/artifacts/2/zip", b"gone", status=410)

        with (
            fake_github.client() as client,
            pytest.raises(GitHubAPIError, match="status 410"),
        ):
            client.download_all([f"{API}/artifacts/1/zip", f"{API}/artifacts/2/zip"])

    def test_download_all_empty(self, fake_github: FakeGitHub) -> None:
        """No URLs means no requests."""
        with fake_github.client() as client:
            assert client.download_all([]) == []
        assert fake_github.requests == []


class TestReleases:
    """Tests for release lookup and asset upload."""

    def test_release_not_found(self, fake_github: FakeGitHub) -> None:
        """A 404 for the tag raises ReleaseNotFoundError."""
        with (
            fake_github.client() as client,
            pytest.raises(ReleaseNotFoundError, match="create it via GitHub web UI"),
        ):
            client.get_release_by_tag("acme", "builds", "v9")

    def test_release_lookup_other_error(self, fake_github: FakeGitHub) -> None:
        """Other failures stay GitHubAPIError."""
        fake_github.json(
            "GET", f"{API}/repos/acme/builds/releases/tags/v1", {}, status=403
        )
        with fake_github.client() as client:
            with pytest.raises(GitHubAPIError) as excinfo:
                client.get_release_by_tag("acme", "builds", "v1")
        assert not isinstance(excinfo.value, ReleaseNotFoundError)

    def test_release_lookup_invalid_json(self, fake_github: FakeGitHub) -> None:
        """A release body that is not JSON is reported as an API failure."""
        fake_github.add(
            "GET",
            f"{API}/repos/acme/builds/releases/tags/v1",
            lambda request: httpx.Response(200, text="oops", request=request),
        )
        with (
            fake_github.client() as client,
            pytest.raises(GitHubAPIError, match="fetch release v1"),
        ):
            client.get_release_by_tag("acme", "builds", "v1")

    def test_upload_asset_headers(self, fake_github: FakeGitHub) -> None:
        """Uploads send the body with explicit length and content type."""
        url = "https://uploads.test/assets"
        fake_github.json("POST", url, {"id": 1}, status=201)

        with fake_github.client() as client:
            client.upload_asset(
                f"{url}?name=a.tar.gz",
                "a.tar.gz",
                b"12345",
                content_type="application/x-tar",
            )

        request = fake_github.requests[0]
        assert request.headers["Content-Length"] == "5"
        assert request.headers["Content-Type"] == "application/x-tar"
        assert request.url.params["name"] == "a.tar.gz"
        assert request.content == b"12345"
