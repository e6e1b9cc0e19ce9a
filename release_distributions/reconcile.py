"""Compare a directory of release distributions with the set a release needs.

The expected set is derived from the files already present: every Python
version seen for the build timestamp must be available for every registered
``(triple, suffix)`` pair.
"""

from __future__ import annotations

import dataclasses
import logging
import typing as typ

from .errors import DistributionFilesystemError, MissingDistributionsError
from .registry import DEFAULT_REGISTRY

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from .registry import PlatformRegistry

__all__ = [
    "DISTRIBUTION_PREFIX",
    "Reconciliation",
    "distribution_filename",
    "expected_filenames",
    "present_filenames",
    "python_versions",
    "reconcile",
    "require_complete",
]

logger = logging.getLogger(__name__)

DISTRIBUTION_PREFIX = "cpython-"


@dataclasses.dataclass(frozen=True, slots=True)
class Reconciliation:
    """Sorted filename sets computed by :func:`reconcile`."""

    present: tuple[str, ...]
    expected: tuple[str, ...]
    missing: tuple[str, ...]
    upload: tuple[str, ...]

    @property
    def complete(self) -> bool:
        """Return ``True`` when nothing expected is missing."""
        return not self.missing


def distribution_filename(version: str, triple: str, suffix: str, timestamp: str) -> str:
    """Return the published filename of one distribution.

    ``install_only`` variants ship as gzip tarballs, everything else as zstd.

    Examples
    --------
    >>> distribution_filename("3.10.0", "x86_64-apple-darwin", "install_only", "20230101")
    'cpython-3.10.0-x86_64-apple-darwin-install_only-20230101.tar.gz'
    """  # noqa: E501
    extension = "tar.gz" if "install_only" in suffix else "tar.zst"
    return f"{DISTRIBUTION_PREFIX}{version}-{triple}-{suffix}-{timestamp}.{extension}"


def present_filenames(dist_dir: Path, timestamp: str) -> set[str]:
    """Return distribution filenames in ``dist_dir`` for ``timestamp``.

    Raises
    ------
    DistributionFilesystemError
        If ``dist_dir`` cannot be listed.
    """
    try:
        names = [entry.name for entry in dist_dir.iterdir()]
    except OSError as exc:
        msg = f"Failed to list distribution directory {dist_dir}: {exc}"
        raise DistributionFilesystemError(msg) from exc
    return {
        name
        for name in names
        if timestamp in name and name.startswith(DISTRIBUTION_PREFIX)
    }


def python_versions(filenames: cabc.Iterable[str]) -> set[str]:
    """Return the second ``-`` delimited field of every filename."""
    return {name.split("-")[1] for name in filenames}


def expected_filenames(
    versions: cabc.Iterable[str],
    timestamp: str,
    registry: PlatformRegistry = DEFAULT_REGISTRY,
) -> set[str]:
    """Return every filename a release of ``versions`` must contain."""
    return {
        distribution_filename(version, triple, suffix, timestamp)
        for version in versions
        for triple, suffix in registry.pairs()
    }


def reconcile(
    dist_dir: Path,
    timestamp: str,
    registry: PlatformRegistry = DEFAULT_REGISTRY,
) -> Reconciliation:
    """Diff the distributions in ``dist_dir`` against the expected set.

    Files present but not expected are left out of the upload set without
    being reported.

    Parameters
    ----------
    dist_dir
        Directory holding downloaded distributions.
    timestamp
        Build timestamp embedded in every filename of the release.
    registry
        Platform registry that defines the expected variants.

    Returns
    -------
    Reconciliation
        Present, expected, missing and uploadable filenames, each sorted.
    """
    present = present_filenames(dist_dir, timestamp)
    expected = expected_filenames(python_versions(present), timestamp, registry)
    return Reconciliation(
        present=tuple(sorted(present)),
        expected=tuple(sorted(expected)),
        missing=tuple(sorted(expected - present)),
        upload=tuple(sorted(expected & present)),
    )


def require_complete(
    reconciliation: Reconciliation, *, ignore_missing: bool = False
) -> tuple[str, ...]:
    """Report missing distributions and return the upload set.

    Raises
    ------
    MissingDistributionsError
        If anything is missing and ``ignore_missing`` is false.
    """
    for name in reconciliation.missing:
        logger.warning("missing release artifact: %s", name)
    if reconciliation.missing and not ignore_missing:
        raise MissingDistributionsError(list(reconciliation.missing))
    return reconciliation.upload
