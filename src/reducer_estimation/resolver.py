"""Total input size computation over source trees."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from reducer_estimation.sources import GlobSource, InputSource, describe_source, iter_leaves
from storage.filesystem import FileSystemMetadata

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class SizeResolution:
    """Outcome of sizing a source tree.

    ``total`` is None whenever at least one leaf could not be sized; partial
    totals are never reported.
    """

    total: int | None
    unresolved: tuple[str, ...] = ()

    @property
    def resolved(self) -> bool:
        """Return True when every leaf was sized.

        Returns
        -------
        bool
            Whether ``total`` is present.
        """
        return self.total is not None


@dataclass(frozen=True)
class SourceSizeResolver:
    """Sum the content length of every leaf of a source tree."""

    metadata: FileSystemMetadata

    def resolve(self, source: InputSource) -> int | None:
        """Return total bytes for ``source`` or None if any leaf is unresolvable.

        Stops at the first leaf that cannot be sized.

        Returns
        -------
        int | None
            Total content length in bytes.
        """
        total = 0
        for leaf in iter_leaves(source):
            size = self._leaf_size(leaf)
            if size is None:
                return None
            total += size
        return total

    def resolve_detailed(self, source: InputSource) -> SizeResolution:
        """Size every leaf and report the ones that failed.

        Returns
        -------
        SizeResolution
            Total (None when poisoned) and labels of the failing leaves.
        """
        total = 0
        unresolved: list[str] = []
        for leaf in iter_leaves(source):
            size = self._leaf_size(leaf)
            if size is None:
                unresolved.append(describe_source(leaf))
                continue
            total += size
        if unresolved:
            return SizeResolution(total=None, unresolved=tuple(unresolved))
        return SizeResolution(total=total)

    def _leaf_size(self, leaf: InputSource) -> int | None:
        if not isinstance(leaf, GlobSource):
            _LOGGER.debug("Source %s has no inspectable storage", describe_source(leaf))
            return None
        try:
            paths = self.metadata.expand(leaf.pattern)
            return sum(self.metadata.content_length(path) for path in paths)
        except (OSError, ValueError) as exc:
            _LOGGER.debug("Unable to size %s: %s", leaf.pattern, exc)
            return None


__all__ = ["SizeResolution", "SourceSizeResolver"]
