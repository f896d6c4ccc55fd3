"""
pipeline.py - Single-file parse orchestrator.

Runs the stages in order for one path:

    scan raw header bytes -> pydicom decode -> diagnostics
                    -> attribute tree -> previews -> JSON

and decides the outcome of the call.  There are three:

- input error:  bad path, missing or unreadable file.  Error text only.
- decode error: pydicom rejected the file.  Error text only, but it
  quotes the raw-byte analysis and a checklist of likely causes.
- success:      a JSON document.  Its ``debug_info`` may still carry
  pixel-stage errors.

A JSON serialization failure replaces success with an error.
"""

import json
import logging
import os
from dataclasses import dataclass
from typing import Callable, Optional

import pydicom

from dicom_preview.attribute_tree import AttributeTreeBuilder
from dicom_preview.diagnostics import collect_diagnostics
from dicom_preview.models import DiagnosticReport, ParseOutput
from dicom_preview.preview import render_previews
from dicom_preview.header_scan import scan_header

logger = logging.getLogger(__name__)

_DECODE_CHECKLIST = (
    "This could be because:\n"
    "1. The file is not a valid DICOM file\n"
    "2. The file is corrupted\n"
    "3. The file uses an unsupported transfer syntax\n"
    "4. There are insufficient read permissions"
)


@dataclass
class PipelineResult:
    """Outcome of one call: exactly one of *json_data* / *error_message* is set."""
    json_data: Optional[str] = None
    error_message: Optional[str] = None
    output: Optional[ParseOutput] = None

    @property
    def success(self) -> bool:
        return self.json_data is not None


def decode_failure_message(path: str, exc: Exception, analysis: str) -> str:
    return (
        f"Failed to parse DICOM file: {path}.\n"
        f"Error details: {exc!r}\n\n"
        f"File Analysis:\n{analysis}\n"
        f"{_DECODE_CHECKLIST}"
    )


def _validate_path(path) -> tuple[Optional[str], Optional[str]]:
    """Return (path, None) for a usable path or (None, error message)."""
    if path is None:
        return None, "Path is null"
    try:
        path = os.fsdecode(path)
    except TypeError as exc:
        return None, f"Invalid path: {exc}"
    if not path or "\x00" in path:
        return None, f"Invalid path: {path!r}"
    if not os.path.exists(path):
        return None, f"File does not exist: {path}"
    return path, None


def parse_file(
    path,
    max_depth: Optional[int] = None,
    jpeg_quality: Optional[int] = None,
    frame_policy: Optional[str] = None,
    resolver: Optional[Callable[[int], str]] = None,
) -> PipelineResult:
    """
    Parse one DICOM file into a JSON result document.

    Parameters
    ----------
    path : str or os.PathLike
        File to parse.
    max_depth : int, optional
        Sequence expansion depth.  Defaults to config value.
    jpeg_quality : int, optional
        Preview JPEG quality.  Defaults to config value.
    frame_policy : str, optional
        ``"fail_fast"`` or ``"best_effort"``.  Defaults to config value.
    resolver : callable, optional
        Tag-to-name lookup.  Defaults to the pydicom dictionary.

    Returns
    -------
    PipelineResult
        ``json_data`` on success, ``error_message`` otherwise.
    """
    builder = AttributeTreeBuilder(resolver=resolver, max_depth=max_depth)

    path, error = _validate_path(path)
    if error is not None:
        logger.error(error)
        return PipelineResult(error_message=error)

    try:
        with open(path, "rb") as f:
            report, analysis = scan_header(f, DiagnosticReport())
    except OSError as exc:
        message = f"Cannot open file: {path}. Error: {exc}"
        logger.error(message)
        return PipelineResult(error_message=message)

    try:
        ds = pydicom.dcmread(path)
    except Exception as exc:
        report.parse_error = f"Failed to parse DICOM file: {exc!r}"
        logger.error("Could not decode %s: %s", path, exc)
        return PipelineResult(error_message=decode_failure_message(path, exc, analysis))

    collect_diagnostics(ds, report)
    attributes = builder.build(ds)
    previews = render_previews(ds, report, jpeg_quality=jpeg_quality, frame_policy=frame_policy)

    output = ParseOutput(attributes=attributes, preview_images=previews, debug_info=report)

    try:
        json_data = json.dumps(output.to_dict())
    except (TypeError, ValueError) as exc:
        message = f"Failed to serialize to JSON: {exc}"
        logger.error(message)
        return PipelineResult(error_message=message)

    logger.info(
        "Parsed %s: %d attributes, %d preview frame(s)",
        path, len(attributes), len(previews or []),
    )
    return PipelineResult(json_data=json_data, output=output)
