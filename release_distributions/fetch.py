"""Download the release distributions produced by CI for one commit."""

from __future__ import annotations

import dataclasses
import io
import logging
import typing as typ
import zipfile
from pathlib import PurePosixPath

from .classifier import ReleaseFile, classify, describe
from .errors import DistributionFilesystemError, WorkflowRunNotFoundError
from .registry import DEFAULT_REGISTRY

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .classifier import Classification
    from .github import Artifact, GitHubClient, WorkflowRun
    from .registry import PlatformRegistry

__all__ = [
    "SKIPPED_ARTIFACT_NAMES",
    "FetchResult",
    "extract_release_files",
    "fetch_release_distributions",
    "find_commit_runs",
]

logger = logging.getLogger(__name__)

SKIPPED_ARTIFACT_NAMES: typ.Final[frozenset[str]] = frozenset(
    {"pythonbuild", "sccache", "toolchain"}
)


@dataclasses.dataclass(slots=True)
class FetchResult:
    """Outcome of :func:`fetch_release_distributions`."""

    written: list[Path] = dataclasses.field(default_factory=list)
    classifications: list[Classification] = dataclasses.field(default_factory=list)
    skipped_artifacts: list[str] = dataclasses.field(default_factory=list)


def find_commit_runs(
    client: GitHubClient, org: str, repo: str, commit: str
) -> list[WorkflowRun]:
    """Return the successful push run of every workflow for ``commit``.

    Raises
    ------
    WorkflowRunNotFoundError
        If any workflow has no matching run.
    """
    runs: list[WorkflowRun] = []
    for workflow_id in client.list_workflows(org, repo):
        candidates = client.iter_runs(
            org, repo, workflow_id, event="push", status="success", head_sha=commit
        )
        run = next((run for run in candidates if run.head_sha == commit), None)
        if run is None:
            raise WorkflowRunNotFoundError(workflow_id, commit)
        runs.append(run)
    return runs


def _release_artifacts(
    client: GitHubClient, runs: typ.Iterable[WorkflowRun], skipped: list[str]
) -> list[Artifact]:
    artifacts: list[Artifact] = []
    for run in runs:
        for artifact in client.list_artifacts(run.artifacts_url):
            if artifact.name in SKIPPED_ARTIFACT_NAMES:
                logger.debug("skipping build byproduct artifact %s", artifact.name)
                skipped.append(artifact.name)
                continue
            artifacts.append(artifact)
    return artifacts


def extract_release_files(
    bundle: bytes,
    dest_dir: Path,
    registry: PlatformRegistry = DEFAULT_REGISTRY,
) -> tuple[list[Path], list[Classification]]:
    """Write the release distributions contained in a zip ``bundle``.

    Parameters
    ----------
    bundle
        Raw bytes of an artifact archive.
    dest_dir
        Directory receiving release files under their own names.
    registry
        Platform registry used to classify each member.

    Returns
    -------
    tuple[list[Path], list[Classification]]
        Paths written and the classification of every file member.

    Raises
    ------
    DistributionFilesystemError
        If the bundle is not a valid zip archive or a file cannot be written.
    """
    written: list[Path] = []
    classifications: list[Classification] = []
    try:
        with zipfile.ZipFile(io.BytesIO(bundle)) as archive:
            for info in archive.infolist():
                if info.is_dir():
                    continue
                name = PurePosixPath(info.filename).name
                classification = classify(name, registry)
                classifications.append(classification)
                logger.info(describe(classification))
                if not isinstance(classification, ReleaseFile):
                    continue
                dest_path = dest_dir / name
                dest_path.write_bytes(archive.read(info))
                written.append(dest_path)
    except zipfile.BadZipFile as exc:
        msg = f"Artifact bundle is not a valid zip archive: {exc}"
        raise DistributionFilesystemError(msg) from exc
    except OSError as exc:
        msg = f"Failed to write release distribution into {dest_dir}: {exc}"
        raise DistributionFilesystemError(msg) from exc
    return written, classifications


def fetch_release_distributions(
    client: GitHubClient,
    *,
    org: str,
    repo: str,
    commit: str,
    dest_dir: Path,
    registry: PlatformRegistry = DEFAULT_REGISTRY,
) -> FetchResult:
    """Download the release distributions CI built for ``commit``.

    Parameters
    ----------
    client
        Authenticated GitHub client.
    org, repo
        Repository whose workflows produced the artifacts.
    commit
        Head SHA the workflow runs must have been triggered for.
    dest_dir
        Directory that receives the release files; created when absent.
    registry
        Platform registry used to decide which files to keep.

    Returns
    -------
    FetchResult
        Files written, classifications reported and artifacts skipped.

    Raises
    ------
    WorkflowRunNotFoundError
        If a workflow has no successful push run for ``commit``.
    GitHubAPIError
        If any listing or download request fails.
    DistributionFilesystemError
        If ``dest_dir`` cannot be created or written to.
    """
    result = FetchResult()
    runs = find_commit_runs(client, org, repo, commit)
    artifacts = _release_artifacts(client, runs, result.skipped_artifacts)

    for artifact in artifacts:
        logger.info("downloading %s", artifact.name)
    bundles = client.download_all([a.archive_download_url for a in artifacts])

    try:
        dest_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        msg = f"Failed to create destination directory {dest_dir}: {exc}"
        raise DistributionFilesystemError(msg) from exc

    for bundle in bundles:
        written, classifications = extract_release_files(bundle, dest_dir, registry)
        result.written.extend(written)
        result.classifications.extend(classifications)
    return result
