"""
diagnostics.py - Summary statistics mined from a decoded dataset.

Every field is computed on its own: a missing or malformed element only
leaves that one field unset and never stops the others.
"""

import logging
from typing import Optional

from pydicom.dataelem import DataElement
from pydicom.dataset import Dataset
from pydicom.tag import Tag

from dicom_preview.elements import (
    PIXEL_DATA_TAG,
    SEQUENCE_VR,
    element_text,
    element_vr,
    top_level_elements,
)
from dicom_preview.models import DiagnosticReport, Dimensions
from dicom_preview.tag_names import format_tag, is_meta_tag

logger = logging.getLogger(__name__)

# Image Pixel module tags
SAMPLES_PER_PIXEL_TAG = Tag(0x0028, 0x0002)
PHOTOMETRIC_INTERPRETATION_TAG = Tag(0x0028, 0x0004)
NUMBER_OF_FRAMES_TAG = Tag(0x0028, 0x0008)
ROWS_TAG = Tag(0x0028, 0x0010)
COLUMNS_TAG = Tag(0x0028, 0x0011)
BITS_ALLOCATED_TAG = Tag(0x0028, 0x0100)
PIXEL_REPRESENTATION_TAG = Tag(0x0028, 0x0103)


def _lookup(ds: Dataset, tag: Tag) -> Optional[DataElement]:
    if tag not in ds:
        return None
    try:
        return ds[tag]
    except Exception as exc:
        logger.debug("Could not load %s: %s", format_tag(tag), exc)
        return None


def _int_field(ds: Dataset, tag: Tag) -> Optional[int]:
    elem = _lookup(ds, tag)
    if elem is None:
        return None
    try:
        return int(elem.value)
    except (TypeError, ValueError, OverflowError) as exc:
        logger.debug("%s is not an integer (%r): %s", format_tag(tag), elem.value, exc)
        return None


def _text_field(ds: Dataset, tag: Tag) -> Optional[str]:
    elem = _lookup(ds, tag)
    if elem is None:
        return None
    try:
        return element_text(elem)
    except ValueError as exc:
        logger.debug("%s has no text form: %s", format_tag(tag), exc)
        return None


def _top_level_tags(ds: Dataset) -> list[Tag]:
    file_meta = getattr(ds, "file_meta", None)
    tags = list(file_meta.keys()) if file_meta is not None else []
    return tags + list(ds.keys())


def collect_diagnostics(ds: Dataset, report: Optional[DiagnosticReport] = None) -> DiagnosticReport:
    """
    Fill the structure-level fields of *report* from a decoded dataset.

    Only top-level elements are counted; nested sequence items are not.

    Parameters
    ----------
    ds : Dataset
        Dataset returned by a successful ``pydicom.dcmread``.
    report : DiagnosticReport, optional
        Report to update, typically the one already filled by the header scan.

    Returns
    -------
    DiagnosticReport
        The updated report.
    """
    report = report if report is not None else DiagnosticReport()

    tags = _top_level_tags(ds)
    report.attribute_count = len(tags)
    report.meta_info_present = any(is_meta_tag(tag) for tag in tags)
    report.sequence_count = sum(
        1 for elem in top_level_elements(ds) if element_vr(elem) == SEQUENCE_VR
    )

    pixel_elem = _lookup(ds, PIXEL_DATA_TAG)
    if pixel_elem is not None:
        report.has_pixel_data = True
        report.pixel_data_vr = element_vr(pixel_elem)

    rows = _int_field(ds, ROWS_TAG)
    columns = _int_field(ds, COLUMNS_TAG)
    if rows is not None and columns is not None:
        report.image_dimensions = Dimensions(rows=rows, columns=columns)

    report.number_of_frames = _int_field(ds, NUMBER_OF_FRAMES_TAG)
    report.bits_allocated = _int_field(ds, BITS_ALLOCATED_TAG)
    report.samples_per_pixel = _int_field(ds, SAMPLES_PER_PIXEL_TAG)
    report.photometric_interpretation = _text_field(ds, PHOTOMETRIC_INTERPRETATION_TAG)
    report.pixel_representation = _int_field(ds, PIXEL_REPRESENTATION_TAG)

    logger.debug(
        "Diagnostics: %d attributes, %d sequences, pixel data=%s",
        report.attribute_count, report.sequence_count, report.has_pixel_data,
    )
    return report
