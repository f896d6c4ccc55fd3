"""
errors.py - Exceptions raised by the client-side ``DicomParser`` API.

The parse pipeline itself reports failures as text; these exceptions
wrap that text for Python callers.
"""


class DicomPreviewError(Exception):
    """Base class for all parser client errors."""

    failure_reason = "The DICOM file could not be processed"
    recovery_suggestion = "Please check the file and try again"


class FileError(DicomPreviewError):
    """The file could not be accessed."""

    failure_reason = "The DICOM file could not be accessed or is invalid"
    recovery_suggestion = "Please check if the file exists and you have permission to access it"

    def __str__(self) -> str:
        return f"File Error: {super().__str__()}"


class ParsingError(DicomPreviewError):
    """The file is not a DICOM file the parser could decode."""

    failure_reason = "The file could not be parsed as a valid DICOM file"
    recovery_suggestion = "Please ensure the file is a valid DICOM file and is not corrupted"

    def __str__(self) -> str:
        return f"DICOM Parsing Error: {super().__str__()}"


class JSONDecodingError(DicomPreviewError):
    """The parser returned a document that could not be decoded."""

    failure_reason = "The parsed DICOM data could not be decoded"
    recovery_suggestion = "This is an internal error. Please report this issue"

    def __str__(self) -> str:
        return f"JSON Decoding Error: {super().__str__()}"
