"""Integer identifier allocation for manifest collections.

DASH adaptation sets and representations carry string ``id`` attributes.
New entries take the next free integer; after a removal the collection is
renumbered so that identifiers stay dense (``0..n-1``) in document order.
"""

from typing import Any, Iterable, Sequence


def next_id(existing_ids: Iterable[str | None]) -> int:
    """Compute the next free integer identifier.

    Non-numeric identifiers (e.g. ``"h264_1080p"``) are ignored so that
    manifests from other packagers can still be edited.

    Args:
        existing_ids: Identifiers already in use

    Returns:
        ``max + 1`` over the numeric identifiers, or 0 if there are none
    """
    numeric = []
    for value in existing_ids:
        if value is None:
            continue
        try:
            numeric.append(int(value))
        except ValueError:
            continue
    return max(numeric) + 1 if numeric else 0


def renumber(collection: Sequence[Any], attribute: str = "id") -> None:
    """Reassign ``"0".."n-1"`` to each item's identifier, in order."""
    for index, item in enumerate(collection):
        setattr(item, attribute, str(index))
