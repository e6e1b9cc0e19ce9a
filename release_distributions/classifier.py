"""Classify artifact filenames against the platform registry.

Matching is by substring containment: a filename belongs to a triple when the
triple appears anywhere in it, and is a release distribution when one of that
triple's suffixes also appears. Filenames are never parsed into fields here.
"""

from __future__ import annotations

import dataclasses
import typing as typ

from .registry import DEFAULT_REGISTRY

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .registry import PlatformRegistry

__all__ = [
    "Classification",
    "NotReleaseArtifact",
    "ReleaseFile",
    "WrongVariant",
    "classify",
    "describe",
]


@dataclasses.dataclass(frozen=True, slots=True)
class NotReleaseArtifact:
    """Filename that contains no registered triple."""

    filename: str
    is_release: typ.ClassVar[bool] = False


@dataclasses.dataclass(frozen=True, slots=True)
class WrongVariant:
    """Filename that names a registered triple with an unregistered variant."""

    filename: str
    triple: str
    is_release: typ.ClassVar[bool] = False


@dataclasses.dataclass(frozen=True, slots=True)
class ReleaseFile:
    """Filename that is a release distribution for ``triple``/``suffix``."""

    filename: str
    triple: str
    suffix: str
    is_release: typ.ClassVar[bool] = True


Classification: typ.TypeAlias = NotReleaseArtifact | WrongVariant | ReleaseFile


def _best_match(filename: str, candidates: cabc.Iterable[str]) -> str | None:
    """Return the longest candidate contained in ``filename``.

    Equal-length matches resolve to the earliest candidate.
    """
    best: str | None = None
    for candidate in candidates:
        if candidate in filename and (best is None or len(candidate) > len(best)):
            best = candidate
    return best


def classify(
    filename: str, registry: PlatformRegistry = DEFAULT_REGISTRY
) -> Classification:
    """Return how ``filename`` relates to the release distributions.

    Parameters
    ----------
    filename
        Candidate file name, either from a downloaded bundle or a local
        directory.
    registry
        Platform registry to match against.

    Returns
    -------
    Classification
        :class:`ReleaseFile` when a triple and one of its suffixes occur in
        ``filename``, :class:`WrongVariant` when only the triple does, and
        :class:`NotReleaseArtifact` otherwise.

    Examples
    --------
    >>> classify("cpython-3.10.0-x86_64-unknown-linux-gnu-lto-20230101.tar.zst")
    ReleaseFile(filename='cpython-3.10.0-x86_64-unknown-linux-gnu-lto-20230101.tar.zst', triple='x86_64-unknown-linux-gnu', suffix='lto')
    >>> classify("README.md")
    NotReleaseArtifact(filename='README.md')
    """  # noqa: E501
    triple = _best_match(filename, registry.triples())
    if triple is None:
        return NotReleaseArtifact(filename)
    suffix = _best_match(filename, registry.variants(triple) or ())
    if suffix is None:
        return WrongVariant(filename, triple)
    return ReleaseFile(filename, triple, suffix)


def describe(classification: Classification) -> str:
    """Return the operator-facing line reported for ``classification``."""
    match classification:
        case ReleaseFile(filename=filename):
            return f"releasing {filename}"
        case WrongVariant(filename=filename, triple=triple):
            return f"{filename} not a release artifact for triple {triple}"
        case NotReleaseArtifact(filename=filename):
            return f"{filename} does not match any registered release triples"
    msg = f"Unknown classification: {classification!r}"
    raise TypeError(msg)
