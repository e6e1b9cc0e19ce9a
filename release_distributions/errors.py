"""Error types shared across the release distribution tooling."""

from __future__ import annotations

__all__ = [
    "DistributionFilesystemError",
    "GitHubAPIError",
    "MissingDistributionsError",
    "NotFoundError",
    "RegistryError",
    "ReleaseDistributionError",
    "ReleaseNotFoundError",
    "WorkflowRunNotFoundError",
]


class ReleaseDistributionError(RuntimeError):
    """Raised when fetching or uploading release distributions cannot continue."""


class NotFoundError(ReleaseDistributionError):
    """Raised when a remote object the command depends on does not exist."""


class WorkflowRunNotFoundError(NotFoundError):
    """Raised when a workflow has no successful push run for the commit."""

    def __init__(self, workflow_id: int, commit: str) -> None:
        super().__init__(
            f"could not find workflow run for commit {commit} "
            f"(workflow {workflow_id})"
        )
        self.workflow_id = workflow_id
        self.commit = commit


class ReleaseNotFoundError(NotFoundError):
    """Raised when no release exists for a tag."""

    def __init__(self, tag: str) -> None:
        super().__init__(f"release {tag} does not exist; create it via GitHub web UI")
        self.tag = tag


class MissingDistributionsError(ReleaseDistributionError):
    """Raised when expected release distributions are absent locally."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__(f"missing {len(missing)} release artifact(s)")
        self.missing = missing


class GitHubAPIError(ReleaseDistributionError):
    """Raised when the GitHub API returns a non-success response."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DistributionFilesystemError(ReleaseDistributionError):
    """Raised when reading or writing distribution files fails."""


class RegistryError(ValueError):
    """Raised when a platform registry table is malformed."""
