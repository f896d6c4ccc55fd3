"""
header_scan.py - Raw byte inspection, independent of the DICOM decoder.

A DICOM Part 10 file starts with a 128-byte preamble followed by the
four-byte marker ``DICM``.  The file meta group comes right after, and
its TransferSyntaxUID is usually within the next hundred bytes.  This
module reads those bytes directly so that a useful description of the
file exists even when pydicom refuses to parse it.

The scan never raises for a short or odd file: missing markers just
leave the matching field empty.
"""

import logging
from typing import BinaryIO, Optional

from dicom_preview.config import CONFIG
from dicom_preview.models import DiagnosticReport

logger = logging.getLogger(__name__)

PREAMBLE_LENGTH = 128
MAGIC_LENGTH = 4
_UID_PREFIX = b"1."


def format_preamble(data: bytes) -> str:
    """Render bytes as ``[00, 1A, FF]``."""
    return "[" + ", ".join(f"{b:02X}" for b in data) + "]"


def find_transfer_syntax(header: bytes, uid_max_length: int = 64) -> Optional[tuple[int, str]]:
    """
    Look for the first ``1.`` after the DICM marker.

    Returns the absolute offset and up to *uid_max_length* bytes decoded
    as text (invalid sequences replaced), or None.
    """
    start = PREAMBLE_LENGTH + MAGIC_LENGTH
    pos = header.find(_UID_PREFIX, start)
    if pos < 0:
        return None
    uid = header[pos:pos + uid_max_length].decode("utf-8", errors="replace")
    return pos, uid


def scan_header(
    stream: BinaryIO,
    report: Optional[DiagnosticReport] = None,
    header_length: Optional[int] = None,
    uid_max_length: Optional[int] = None,
) -> tuple[DiagnosticReport, str]:
    """
    Fill the file-level fields of a diagnostic report from raw bytes.

    Parameters
    ----------
    stream : BinaryIO
        An open, seekable binary stream.  Left positioned at offset 0.
    report : DiagnosticReport, optional
        Report to update.  A new one is created if omitted.
    header_length : int, optional
        How many leading bytes to inspect.  Defaults to config value.
    uid_max_length : int, optional
        Maximum length of the transfer syntax candidate.  Defaults to config value.

    Returns
    -------
    report : DiagnosticReport
        The updated report.
    analysis : str
        Human-readable summary, one finding per line.
    """
    report = report if report is not None else DiagnosticReport()
    header_length = header_length or CONFIG["header_scan"]["header_length"]
    uid_max_length = uid_max_length or CONFIG["header_scan"]["uid_max_length"]

    lines: list[str] = []

    try:
        report.file_size = stream.seek(0, 2)
        lines.append(f"File size: {report.file_size} bytes")
        stream.seek(0)
        header = stream.read(header_length)
        stream.seek(0)
    except OSError as exc:
        logger.debug("Could not read file header: %s", exc)
        header = b""

    if len(header) >= PREAMBLE_LENGTH + MAGIC_LENGTH:
        report.file_preamble = format_preamble(header[:PREAMBLE_LENGTH])
        report.dicom_magic = header[PREAMBLE_LENGTH:PREAMBLE_LENGTH + MAGIC_LENGTH].decode(
            "utf-8", errors="replace"
        )
        lines.append("Header analysis:")
        lines.append(f"First 128 bytes (preamble): {report.file_preamble}")
        lines.append(f"DICM marker at 128: {report.dicom_magic}")

        lines.append("Looking for transfer syntax UID...")
        found = find_transfer_syntax(header, uid_max_length)
        if found is not None:
            offset, uid = found
            report.transfer_syntax = uid
            lines.append(f"Possible UID found at offset {offset}: {uid}")
    else:
        logger.debug("Header too short for preamble analysis (%d bytes).", len(header))

    return report, "\n".join(lines) + "\n"
