"""
tag_names.py - Tag formatting and display-name lookup.

The resolver is passed into the tree builder rather than read from a
global table, so tests can supply a small synthetic dictionary.
"""

from typing import Mapping, Optional

from pydicom.datadict import keyword_for_tag
from pydicom.tag import BaseTag, Tag

UNKNOWN_NAME = "Unknown"


def format_tag(tag) -> str:
    """Return the canonical ``(GGGG,EEEE)`` form with uppercase hex."""
    tag = Tag(tag)
    return f"({tag.group:04X},{tag.elem:04X})"


class TagNameResolver:
    """
    Map a tag to its display name.

    With no *names* mapping the pydicom data dictionary is used.  Any tag
    that is not registered resolves to ``"Unknown"``.
    """

    def __init__(self, names: Optional[Mapping[int, str]] = None):
        self._names = dict(names) if names is not None else None

    def __call__(self, tag) -> str:
        return self.resolve(tag)

    def resolve(self, tag) -> str:
        tag = Tag(tag)
        if self._names is not None:
            name = self._names.get(int(tag))
        else:
            name = keyword_for_tag(tag)
        return name or UNKNOWN_NAME


# Shared default backed by the standard dictionary
DEFAULT_RESOLVER = TagNameResolver()


def is_meta_tag(tag: BaseTag) -> bool:
    """True for elements in the reserved file meta group (0002,xxxx)."""
    return Tag(tag).group == 0x0002
