"""
attribute_tree.py - Flatten a pydicom Dataset into a serializable attribute tree.

Each element becomes an ``Attribute``.  A sequence (VR ``SQ``) becomes a
``Group`` whose content is the attributes of all of its items, one level
deeper, concatenated in order; item boundaries are not kept.

DEPTH POLICY
------------
Sequences are expanded only while ``depth < max_depth``.  With the
default ``max_depth=2`` a root sequence (depth 0) and a sequence inside
its items (depth 1) are both expanded, while a sequence found at depth 2
is rendered as the leaf text ``[Cannot display value of type SQ]``.
This bounds the output size for deeply nested files; raise
``attribute_tree.max_depth`` in config.yaml to see further.
"""

import logging
from typing import Callable, Iterable, Optional

from pydicom.dataelem import DataElement
from pydicom.dataset import Dataset

from dicom_preview.config import CONFIG
from dicom_preview.elements import (
    BINARY_VRS,
    PIXEL_DATA_TAG,
    SEQUENCE_VR,
    element_text,
    element_vr,
    iter_elements,
    top_level_elements,
)
from dicom_preview.models import Attribute, AttributeValue, Group, Text
from dicom_preview.tag_names import DEFAULT_RESOLVER, format_tag

logger = logging.getLogger(__name__)

PIXEL_DATA_PLACEHOLDER = "[PixelData]"
BINARY_PLACEHOLDER = "[Binary data]"


def leaf_value(elem: DataElement) -> Text:
    """Text rendering used for every element that is not expanded."""
    vr = element_vr(elem)
    if vr in BINARY_VRS:
        return Text(BINARY_PLACEHOLDER)
    try:
        return Text(element_text(elem))
    except Exception:
        return Text(f"[Cannot display value of type {vr}]")


class AttributeTreeBuilder:
    """
    Build the flattened attribute list for a dataset.

    Parameters
    ----------
    resolver : callable, optional
        Maps a tag to its display name.  Defaults to the pydicom dictionary.
    max_depth : int, optional
        Deepest level at which sequences are still expanded.  Defaults to
        config value.
    """

    def __init__(
        self,
        resolver: Optional[Callable[[int], str]] = None,
        max_depth: Optional[int] = None,
    ):
        self.resolver = resolver or DEFAULT_RESOLVER
        self.max_depth = max_depth if max_depth is not None else CONFIG["attribute_tree"]["max_depth"]
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got max_depth={self.max_depth}.")

    def build(self, ds: Dataset) -> list[Attribute]:
        """Return the attributes of *ds*, file meta included, at depth 0."""
        return self._build_level(top_level_elements(ds), depth=0)

    def _build_level(self, elements: Iterable[DataElement], depth: int) -> list[Attribute]:
        attributes: list[Attribute] = []
        for elem in elements:
            try:
                attributes.append(self._build_attribute(elem, depth))
            except Exception as exc:
                # The element is left out of the tree rather than replaced
                logger.debug("Omitting %s at depth %d: %s", format_tag(elem.tag), depth, exc)
        return attributes

    def _build_attribute(self, elem: DataElement, depth: int) -> Attribute:
        vr = element_vr(elem)
        value: AttributeValue
        if elem.tag == PIXEL_DATA_TAG:
            value = Text(PIXEL_DATA_PLACEHOLDER)
        elif vr == SEQUENCE_VR and depth < self.max_depth:
            value = self._build_group(elem, depth)
        else:
            value = leaf_value(elem)

        return Attribute(
            depth=depth,
            tag=format_tag(elem.tag),
            name=self.resolver(elem.tag),
            vr=vr,
            value=value,
        )

    def _build_group(self, elem: DataElement, depth: int) -> Group:
        content: list[Attribute] = []
        for item in elem.value or []:
            content.extend(self._build_level(iter_elements(item), depth + 1))
        return Group(content)


def build_attribute_tree(
    ds: Dataset,
    resolver: Optional[Callable[[int], str]] = None,
    max_depth: Optional[int] = None,
) -> list[Attribute]:
    """Convenience wrapper around ``AttributeTreeBuilder(...).build(ds)``."""
    return AttributeTreeBuilder(resolver=resolver, max_depth=max_depth).build(ds)
