"""
elements.py - Helpers for walking pydicom datasets tolerantly.

pydicom converts raw elements lazily, so simply looking an element up
can fail on a malformed file.  These helpers skip such elements instead
of aborting the whole walk.
"""

import logging
from typing import Iterator

import numpy as np
from pydicom.dataelem import DataElement
from pydicom.dataset import Dataset
from pydicom.multival import MultiValue
from pydicom.tag import Tag

from dicom_preview.tag_names import format_tag

logger = logging.getLogger(__name__)

PIXEL_DATA_TAG = Tag(0x7FE0, 0x0010)
SEQUENCE_VR = "SQ"
# Value representations whose content is an opaque byte blob
BINARY_VRS = frozenset({"OB", "OW", "UN"})
# Numeric "other" VRs stored as raw little-endian bytes
NUMERIC_BYTE_VRS = {"OF": "<f4", "OD": "<f8", "OL": "<u4", "OV": "<u8"}


def iter_elements(dataset: Dataset) -> Iterator[DataElement]:
    """Yield each element of *dataset* in tag order, skipping any that fail to load."""
    for tag in sorted(dataset.keys()):
        try:
            elem = dataset[tag]
        except Exception as exc:
            logger.debug("Skipping element %s: %s", format_tag(tag), exc)
            continue
        yield elem


def top_level_elements(ds: Dataset) -> Iterator[DataElement]:
    """File meta elements first, then the main dataset."""
    file_meta = getattr(ds, "file_meta", None)
    if file_meta is not None:
        yield from iter_elements(file_meta)
    yield from iter_elements(ds)


def element_vr(elem: DataElement) -> str:
    return str(elem.VR)


def element_text(elem: DataElement) -> str:
    """
    Render an element's value as display text.

    Multi-valued elements are joined with a backslash, the DICOM value
    delimiter.  OF/OD/OL/OV byte values are decoded as little-endian
    numbers.  Raises ValueError for values with no text form (sequences,
    other raw bytes, or a byte length that does not fit the VR).
    """
    vr = element_vr(elem)
    if vr == SEQUENCE_VR:
        raise ValueError("sequence values have no text form")

    value = elem.value
    if value is None:
        return ""
    if vr in NUMERIC_BYTE_VRS and isinstance(value, (bytes, bytearray)):
        numbers = np.frombuffer(value, dtype=NUMERIC_BYTE_VRS[vr])
        return "\\".join(str(v) for v in numbers.tolist())
    if isinstance(value, (MultiValue, list, tuple)):
        return "\\".join(_scalar_text(v) for v in value)
    return _scalar_text(value)


def _scalar_text(value) -> str:
    if isinstance(value, (bytes, bytearray, Dataset)):
        raise ValueError(f"{type(value).__name__} value has no text form")
    return str(value)
