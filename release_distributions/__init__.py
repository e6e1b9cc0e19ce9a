"""Fetch CI-built Python distributions and publish them to GitHub releases.

The package classifies artifact filenames against a fixed table of platform
triples and build variants, downloads the matching files produced by the
workflow runs for a commit, and uploads a complete set to an existing release.
"""

from __future__ import annotations

from .classifier import (
    Classification,
    NotReleaseArtifact,
    ReleaseFile,
    WrongVariant,
    classify,
)
from .errors import (
    DistributionFilesystemError,
    GitHubAPIError,
    MissingDistributionsError,
    NotFoundError,
    RegistryError,
    ReleaseDistributionError,
    ReleaseNotFoundError,
    WorkflowRunNotFoundError,
)
from .fetch import FetchResult, fetch_release_distributions
from .github import GitHubClient
from .reconcile import Reconciliation, reconcile, require_complete
from .registry import DEFAULT_REGISTRY, PlatformRegistry
from .upload import upload_release_distributions

__all__ = [
    "DEFAULT_REGISTRY",
    "Classification",
    "DistributionFilesystemError",
    "FetchResult",
    "GitHubAPIError",
    "GitHubClient",
    "MissingDistributionsError",
    "NotFoundError",
    "NotReleaseArtifact",
    "PlatformRegistry",
    "Reconciliation",
    "RegistryError",
    "ReleaseDistributionError",
    "ReleaseFile",
    "ReleaseNotFoundError",
    "WorkflowRunNotFoundError",
    "WrongVariant",
    "classify",
    "fetch_release_distributions",
    "reconcile",
    "require_complete",
    "upload_release_distributions",
]
