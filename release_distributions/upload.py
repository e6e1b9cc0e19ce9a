"""Upload reconciled release distributions to an existing GitHub release.

Releases are never created here: the tag must already have a release, which is
made by hand in the GitHub web UI. Files are uploaded one at a time in
lexicographic order and the first failure aborts the command.
"""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as typ

import httpx

from .errors import DistributionFilesystemError

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from .github import GitHubClient

__all__ = [
    "ASSET_CONTENT_TYPE",
    "ReleaseAsset",
    "asset_upload_url",
    "collect_assets",
    "upload_release_distributions",
]

logger = logging.getLogger(__name__)

ASSET_CONTENT_TYPE = "application/x-tar"


@dc.dataclass(frozen=True, slots=True)
class ReleaseAsset:
    """Distribution file staged for upload."""

    path: Path
    asset_name: str
    size: int


def asset_upload_url(upload_url_template: str, asset_name: str) -> str:
    """Return the upload endpoint for ``asset_name``.

    GitHub advertises ``upload_url`` as a URI template such as
    ``.../assets{?name,label}``; the placeholder is dropped and replaced with a
    ``name`` query parameter.

    Examples
    --------
    >>> asset_upload_url(
    ...     "https://uploads.github.com/repos/o/r/releases/1/assets{?name,label}",
    ...     "cpython.tar.gz",
    ... )
    'https://uploads.github.com/repos/o/r/releases/1/assets?name=cpython.tar.gz'
    """
    base, _, _ = upload_url_template.partition("{")
    return str(httpx.URL(base).copy_set_param("name", asset_name))


def collect_assets(dist_dir: Path, filenames: cabc.Iterable[str]) -> list[ReleaseAsset]:
    """Return :class:`ReleaseAsset` records for ``filenames`` in sorted order.

    Raises
    ------
    DistributionFilesystemError
        If a file cannot be inspected.
    """
    assets: list[ReleaseAsset] = []
    for name in sorted(filenames):
        path = dist_dir / name
        try:
            size = path.stat().st_size
        except OSError as exc:
            msg = f"Failed to read release distribution {path}: {exc}"
            raise DistributionFilesystemError(msg) from exc
        assets.append(ReleaseAsset(path=path, asset_name=name, size=size))
    return assets


def _render_summary(assets: cabc.Iterable[ReleaseAsset]) -> str:
    """Return a human-readable upload plan."""
    lines = ["Planned uploads:"]
    lines.extend(
        f"  - {asset.asset_name} ({asset.size} bytes) -> {asset.path}"
        for asset in assets
    )
    return "\n".join(lines)


def upload_release_distributions(
    client: GitHubClient | None,
    *,
    org: str,
    repo: str,
    tag: str,
    assets: cabc.Sequence[ReleaseAsset],
    dry_run: bool = False,
) -> int:
    """Upload ``assets`` to the release identified by ``tag``.

    Parameters
    ----------
    client
        Authenticated GitHub client. May be ``None`` in dry-run mode.
    org, repo
        Repository that owns the release.
    tag
        Tag of an existing release.
    assets
        Distributions to upload, in upload order.
    dry_run
        When ``True``, log the upload plan without contacting GitHub.

    Returns
    -------
    int
        Number of assets uploaded (or planned in dry-run mode).

    Raises
    ------
    ReleaseNotFoundError
        If ``tag`` has no release.
    GitHubAPIError
        If an upload returns a non-success status.
    DistributionFilesystemError
        If a distribution cannot be read.
    """
    if dry_run:
        logger.info(_render_summary(assets))
        return len(assets)

    if client is None:
        msg = "A GitHub client is required unless dry_run is set"
        raise ValueError(msg)

    release = client.get_release_by_tag(org, repo, tag)

    count = 0
    for asset in assets:
        try:
            data = asset.path.read_bytes()
        except OSError as exc:
            msg = f"Failed to read release distribution {asset.path}: {exc}"
            raise DistributionFilesystemError(msg) from exc
        url = asset_upload_url(release.upload_url, asset.asset_name)
        logger.info("uploading %s to %s", asset.asset_name, url)
        client.upload_asset(
            url, asset.asset_name, data, content_type=ASSET_CONTENT_TYPE
        )
        count += 1
    return count
