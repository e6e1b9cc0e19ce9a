"""Platform triples and the build variants published for each of them.

The registry is the single source of truth for which files count as release
distributions. It is built once at import time as :data:`DEFAULT_REGISTRY` and
handed explicitly to the classifier and the reconciler.
"""

from __future__ import annotations

import dataclasses
import types
import typing as typ

from .errors import RegistryError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

__all__ = ["DEFAULT_REGISTRY", "PlatformRegistry"]


@dataclasses.dataclass(frozen=True, slots=True)
class PlatformRegistry:
    """Immutable mapping of platform triple to ordered variant suffixes.

    Iteration follows insertion order so diagnostics are reproducible.
    """

    _table: cabc.Mapping[str, tuple[str, ...]]

    @classmethod
    def from_mapping(
        cls, table: cabc.Mapping[str, cabc.Iterable[str]]
    ) -> PlatformRegistry:
        """Validate ``table`` and return a registry that cannot be mutated.

        Parameters
        ----------
        table
            Mapping of platform triple to the variant suffixes released for it.

        Returns
        -------
        PlatformRegistry
            Registry preserving the insertion order of ``table``.

        Raises
        ------
        RegistryError
            If a triple is empty, or its suffix list is empty or contains
            duplicates or empty strings.

        Examples
        --------
        >>> registry = PlatformRegistry.from_mapping({"x86_64-apple-darwin": ["lto"]})
        >>> registry.variants("x86_64-apple-darwin")
        ('lto',)
        """
        frozen: dict[str, tuple[str, ...]] = {}
        for triple, suffixes in table.items():
            if not triple:
                msg = "Platform triples must be non-empty strings"
                raise RegistryError(msg)
            variants = tuple(suffixes)
            if not variants:
                msg = f"Triple {triple} has no variant suffixes"
                raise RegistryError(msg)
            if any(not suffix for suffix in variants):
                msg = f"Triple {triple} has an empty variant suffix"
                raise RegistryError(msg)
            if len(set(variants)) != len(variants):
                msg = f"Triple {triple} lists duplicate variant suffixes: {variants}"
                raise RegistryError(msg)
            frozen[triple] = variants
        return cls(types.MappingProxyType(frozen))

    def variants(self, triple: str) -> tuple[str, ...] | None:
        """Return the suffixes registered for ``triple`` or ``None``."""
        return self._table.get(triple)

    def triples(self) -> tuple[str, ...]:
        """Return every registered triple in insertion order."""
        return tuple(self._table)

    def pairs(self) -> typ.Iterator[tuple[str, str]]:
        """Yield every ``(triple, suffix)`` combination in registry order."""
        for triple, suffixes in self._table.items():
            for suffix in suffixes:
                yield triple, suffix

    def __contains__(self, triple: object) -> bool:
        return triple in self._table

    def __iter__(self) -> typ.Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)


_MACOS_SUFFIXES = ("debug", "lto", "pgo", "pgo+lto", "install_only")
_WINDOWS_SUFFIXES = ("shared-pgo", "static-noopt", "shared-install_only")
_LINUX_SUFFIXES_PGO = ("debug", "lto", "pgo", "pgo+lto", "install_only")
_LINUX_SUFFIXES_NOPGO = ("debug", "lto", "noopt", "install_only")

DEFAULT_REGISTRY: typ.Final[PlatformRegistry] = PlatformRegistry.from_mapping(
    {
        # macOS
        "aarch64-apple-darwin": _MACOS_SUFFIXES,
        "x86_64-apple-darwin": _MACOS_SUFFIXES,
        # Windows
        "i686-pc-windows-msvc": _WINDOWS_SUFFIXES,
        "x86_64-pc-windows-msvc": _WINDOWS_SUFFIXES,
        # Linux
        "aarch64-unknown-linux-gnu": _LINUX_SUFFIXES_NOPGO,
        "i686-unknown-linux-gnu": _LINUX_SUFFIXES_PGO,
        "x86_64-unknown-linux-gnu": _LINUX_SUFFIXES_PGO,
        "x86_64-unknown-linux-musl": _LINUX_SUFFIXES_NOPGO,
    }
)
