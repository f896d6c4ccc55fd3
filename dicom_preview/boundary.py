"""
boundary.py - The one-shot call/release contract and its client wrapper.

``parse_dicom_file`` hands back a ``ParseResultRecord`` holding either
the JSON document or an error message.  The caller owns the record and
releases it with ``free_parse_result``; releasing twice, or releasing a
record with nothing in it, is harmless.

``DicomParser`` sits on the consuming side: it validates the path,
makes the call, always releases the record, and turns the JSON back into
model objects or raises one of the ``dicom_preview.errors`` exceptions.
"""

import base64
import binascii
import json
import logging
import os
from dataclasses import dataclass
from typing import Optional

from dicom_preview.errors import FileError, JSONDecodingError, ParsingError
from dicom_preview.models import Attribute, DiagnosticReport, ParseOutput
from dicom_preview.pipeline import parse_file

logger = logging.getLogger(__name__)


@dataclass
class ParseResultRecord:
    json_data: Optional[str] = None
    error_message: Optional[str] = None


def parse_dicom_file(path) -> ParseResultRecord:
    """Parse *path* and return an owned result record."""
    result = parse_file(path)
    return ParseResultRecord(json_data=result.json_data, error_message=result.error_message)


def free_parse_result(record: Optional[ParseResultRecord]) -> None:
    """Release both text fields of *record*.  Safe to call more than once."""
    if record is None:
        return
    record.json_data = None
    record.error_message = None


@dataclass
class ParseResult:
    """Decoded parse output as handed to application code."""
    attributes: list[Attribute]
    preview_image_data: list[bytes]
    debug_info: DiagnosticReport


def _decode_previews(encoded: Optional[list[str]]) -> list[bytes]:
    images: list[bytes] = []
    for index, text in enumerate(encoded or []):
        try:
            images.append(base64.b64decode(text, validate=True))
        except (binascii.Error, ValueError) as exc:
            logger.warning("Skipping preview %d with invalid base64: %s", index, exc)
    return images


class DicomParser:
    """Client API: parse a file and get model objects back, or an exception."""

    @staticmethod
    def parse_file(path) -> ParseResult:
        """
        Parse the DICOM file at *path*.

        Raises
        ------
        FileError
            If *path* does not exist, is not a file, or is not readable.
        ParsingError
            If the parser reported an error or found no attributes.
        JSONDecodingError
            If the returned document is malformed.
        """
        DicomParser._validate_file(path)
        record = parse_dicom_file(path)
        try:
            return DicomParser._process_record(record)
        finally:
            free_parse_result(record)

    @staticmethod
    def _validate_file(path) -> None:
        if path is None:
            raise FileError("Path is null")
        if not os.path.exists(path):
            raise FileError(f"File does not exist at path: {path}")
        if not os.path.isfile(path):
            raise FileError(f"Path is not a file: {path}")
        if not os.access(path, os.R_OK):
            raise FileError(f"File is not readable at path: {path}")

    @staticmethod
    def _process_record(record: ParseResultRecord) -> ParseResult:
        if record.error_message is not None:
            raise ParsingError(record.error_message)
        if record.json_data is None:
            raise ParsingError("No data returned from parser")
        return DicomParser._decode_json(record.json_data)

    @staticmethod
    def _decode_json(json_data: str) -> ParseResult:
        try:
            output = ParseOutput.from_dict(json.loads(json_data))
        except json.JSONDecodeError as exc:
            raise JSONDecodingError(f"Invalid JSON data: {exc}") from exc
        except KeyError as exc:
            raise JSONDecodingError(f"Missing key {exc}") from exc
        except (TypeError, ValueError, AttributeError) as exc:
            raise JSONDecodingError(f"Type mismatch: {exc}") from exc

        if not output.attributes:
            raise ParsingError("No DICOM attributes found in the file")

        return ParseResult(
            attributes=output.attributes,
            preview_image_data=_decode_previews(output.preview_images),
            debug_info=output.debug_info,
        )
