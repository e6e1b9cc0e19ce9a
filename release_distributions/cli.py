"""Command-line entry point for fetching and uploading release distributions.

Examples
--------
Download the distributions built for a commit::

    release-distributions fetch-release-distributions --dest dist \
        --organization indygreg --repo python-build-standalone \
        --commit 0123abcd --token "$GITHUB_TOKEN"

Upload them to an existing release::

    release-distributions upload-release-distributions --dist dist \
        --datetime 20230101T1200 --tag 20230101 \
        --organization indygreg --repo python-build-standalone

Every option may also be supplied as an ``INPUT_``-prefixed environment
variable, e.g. ``INPUT_DIST=dist``, which is how composite actions forward
their inputs.
"""

from __future__ import annotations

import contextlib
import logging
import sys
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .errors import (
    DistributionFilesystemError,
    GitHubAPIError,
    MissingDistributionsError,
    NotFoundError,
    ReleaseDistributionError,
)
from .fetch import fetch_release_distributions
from .github import DEFAULT_API_URL, GitHubClient
from .output import write_outputs
from .reconcile import reconcile, require_complete
from .registry import DEFAULT_REGISTRY
from .upload import collect_assets, upload_release_distributions

__all__ = ["app", "fetch_command", "main", "upload_command"]

_PACKAGE_LOGGER = "release_distributions"

app: App = App(
    name="release-distributions",
    help="Fetch CI-built Python distributions and publish them to a release.",
    config=cyclopts.config.Env("INPUT_", command=False),
)

Token = typ.Annotated[str, Parameter(env_var="GITHUB_TOKEN", required=True)]


def _configure_logging(*, verbose: bool) -> None:
    """Send package diagnostics to stderr as bare messages."""
    logging.basicConfig(format="%(message)s", stream=sys.stderr)
    logging.getLogger(_PACKAGE_LOGGER).setLevel(
        logging.DEBUG if verbose else logging.INFO
    )


def _error_title(exc: ReleaseDistributionError) -> str:
    match exc:
        case NotFoundError():
            return "Not Found"
        case MissingDistributionsError():
            return "Incomplete Release"
        case GitHubAPIError():
            return "GitHub API Failure"
        case DistributionFilesystemError():
            return "Filesystem Failure"
    return "Release Distribution Failure"


def _fail(exc: ReleaseDistributionError) -> typ.NoReturn:
    """Report ``exc`` as a workflow error annotation and exit with status 1."""
    print(f"::error title={_error_title(exc)}::{exc}", file=sys.stderr)
    raise SystemExit(1) from exc


@app.command(name="fetch-release-distributions")
def fetch_command(
    *,
    dest: typ.Annotated[Path, Parameter(required=True)],
    organization: typ.Annotated[str, Parameter(required=True)],
    repo: typ.Annotated[str, Parameter(required=True)],
    commit: typ.Annotated[str, Parameter(required=True)],
    token: Token,
    api_url: str = DEFAULT_API_URL,
    verbose: bool = False,
) -> None:
    """Download the release distributions built by CI for a commit.

    Parameters
    ----------
    dest
        Directory that receives the release distribution files.
    organization
        GitHub organisation or user owning the repository.
    repo
        Repository name.
    commit
        Commit SHA whose successful push workflow runs are inspected.
    token
        GitHub token with ``actions:read`` access.
    api_url
        GitHub REST API base URL.
    verbose
        Emit debug diagnostics.
    """
    _configure_logging(verbose=verbose)
    try:
        with GitHubClient(token, api_url=api_url) as client:
            result = fetch_release_distributions(
                client,
                org=organization,
                repo=repo,
                commit=commit,
                dest_dir=dest,
                registry=DEFAULT_REGISTRY,
            )
        write_outputs(fetched_count=len(result.written))
    except ReleaseDistributionError as exc:
        _fail(exc)

    print(
        f"Fetched {len(result.written)} release distribution(s) into '{dest}'.",
        file=sys.stderr,
    )


@app.command(name="upload-release-distributions")
def upload_command(
    *,
    dist: typ.Annotated[Path, Parameter(required=True)],
    datetime: typ.Annotated[str, Parameter(required=True)],
    tag: typ.Annotated[str, Parameter(required=True)],
    organization: typ.Annotated[str, Parameter(required=True)],
    repo: typ.Annotated[str, Parameter(required=True)],
    token: Token,
    ignore_missing: bool = False,
    dry_run: bool = False,
    api_url: str = DEFAULT_API_URL,
    verbose: bool = False,
) -> None:
    """Upload the distributions for a build timestamp to a release.

    Parameters
    ----------
    dist
        Directory holding the downloaded distributions.
    datetime
        Build timestamp embedded in the distribution filenames.
    tag
        Tag of the release receiving the assets. The release must exist.
    organization
        GitHub organisation or user owning the repository.
    repo
        Repository name.
    token
        GitHub token with ``contents:write`` access.
    ignore_missing
        Upload whatever is present even when expected files are missing.
    dry_run
        Report the upload plan without contacting GitHub.
    api_url
        GitHub REST API base URL.
    verbose
        Emit debug diagnostics.
    """
    _configure_logging(verbose=verbose)
    try:
        reconciliation = reconcile(dist, datetime, registry=DEFAULT_REGISTRY)
        write_outputs(missing_count=len(reconciliation.missing))
        filenames = require_complete(reconciliation, ignore_missing=ignore_missing)
        assets = collect_assets(dist, filenames)
        if dry_run:
            count = upload_release_distributions(
                None, org=organization, repo=repo, tag=tag, assets=assets, dry_run=True
            )
        else:
            with GitHubClient(token, api_url=api_url) as client:
                count = upload_release_distributions(
                    client, org=organization, repo=repo, tag=tag, assets=assets
                )
        write_outputs(uploaded_count=count)
    except ReleaseDistributionError as exc:
        # Report the first failure even when the output file is unwritable.
        with contextlib.suppress(DistributionFilesystemError):
            write_outputs(uploaded_count=0)
        _fail(exc)

    print(f"Successfully processed {count} asset(s) for {tag}.", file=sys.stderr)


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
