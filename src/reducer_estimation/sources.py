"""Input source descriptors for job steps.

A step reads from a tree of sources: glob-addressable leaves grouped under
composite nodes. Sources are tagged msgspec structs so that a whole tree can be
decoded from a step file.
"""

from __future__ import annotations

from collections.abc import Iterator

from serde_msgspec import StructBaseStrict


class GlobSource(StructBaseStrict, frozen=True, tag="glob", tag_field="kind"):
    """Leaf source addressed by a filesystem glob pattern."""

    pattern: str


class CompositeSource(StructBaseStrict, frozen=True, tag="composite", tag_field="kind"):
    """Source built from several child sources."""

    children: tuple[InputSource, ...] = ()


class OpaqueSource(StructBaseStrict, frozen=True, tag="opaque", tag_field="kind"):
    """Leaf source whose storage cannot be inspected (for example an in-memory table)."""

    description: str = ""


InputSource = GlobSource | CompositeSource | OpaqueSource


def describe_source(source: InputSource) -> str:
    """Return a short human-readable label for a leaf or composite.

    Returns
    -------
    str
        Label suitable for logs and diagnostics payloads.
    """
    if isinstance(source, GlobSource):
        return source.pattern
    if isinstance(source, OpaqueSource):
        return f"<opaque:{source.description}>" if source.description else "<opaque>"
    return f"<composite:{len(source.children)}>"


def iter_leaves(source: InputSource) -> Iterator[GlobSource | OpaqueSource]:
    """Yield leaves in depth-first, left-to-right order.

    Yields
    ------
    GlobSource | OpaqueSource
        Leaf sources of the tree.
    """
    stack: list[InputSource] = [source]
    while stack:
        current = stack.pop()
        if isinstance(current, CompositeSource):
            stack.extend(reversed(current.children))
            continue
        yield current


__all__ = [
    "CompositeSource",
    "GlobSource",
    "InputSource",
    "OpaqueSource",
    "describe_source",
    "iter_leaves",
]
