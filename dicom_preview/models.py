"""
models.py - Result document types for a single parse call.

Every object here is created fresh per call and converted to plain
dicts/lists by ``to_dict()`` for JSON serialization.  ``from_dict()``
rebuilds the objects on the consuming side of the boundary.

The JSON layout mirrors the consumer contract:

    {"attributes": [...], "preview_images": [...] | null, "debug_info": {...}}
"""

from dataclasses import dataclass, field, fields
from typing import Any, Optional, Union

# Serialized discriminators for AttributeValue
TEXT_TYPE = "String"
GROUP_TYPE = "Sequence"


# ---------------------------------------------------------------------------
# Attribute tree
# ---------------------------------------------------------------------------

@dataclass
class Text:
    """Display-ready rendering of a scalar or non-recursible value."""
    content: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": TEXT_TYPE, "content": self.content}


@dataclass
class Group:
    """Flattened contents of a sequence: every item's attributes, in order."""
    content: list["Attribute"] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"type": GROUP_TYPE, "content": [a.to_dict() for a in self.content]}


AttributeValue = Union[Text, Group]


def value_from_dict(data: dict[str, Any]) -> AttributeValue:
    kind = data["type"]
    if kind == TEXT_TYPE:
        if not isinstance(data["content"], str):
            raise TypeError(f"String content must be text, got {type(data['content']).__name__}")
        return Text(data["content"])
    if kind == GROUP_TYPE:
        return Group([Attribute.from_dict(a) for a in data["content"]])
    raise ValueError(f"Unknown type {kind!r}")


@dataclass
class Attribute:
    """One metadata entry of the flattened attribute tree."""
    depth: int
    tag: str      # "(GGGG,EEEE)", uppercase hex
    name: str     # dictionary keyword or "Unknown"
    vr: str
    value: AttributeValue

    def to_dict(self) -> dict[str, Any]:
        return {
            "depth": self.depth,
            "tag": self.tag,
            "name": self.name,
            "vr": self.vr,
            "value": self.value.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Attribute":
        return cls(
            depth=int(data["depth"]),
            tag=data["tag"],
            name=data["name"],
            vr=data["vr"],
            value=value_from_dict(data["value"]),
        )


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------

@dataclass
class Dimensions:
    rows: int
    columns: int

    def to_dict(self) -> dict[str, int]:
        return {"rows": self.rows, "columns": self.columns}


@dataclass
class DiagnosticReport:
    """
    File- and structure-level facts gathered during one parse attempt.

    File-level fields come from the raw bytes and are always filled in.
    Structure-level fields keep their defaults unless the structured
    decode succeeded.  The four ``*_error`` fields record failures.
    """
    # File information
    file_size: int = 0
    file_preamble: str = ""
    dicom_magic: str = ""
    transfer_syntax: Optional[str] = None

    # General DICOM info
    attribute_count: int = 0
    sequence_count: int = 0
    meta_info_present: bool = False

    # Pixel data info
    has_pixel_data: bool = False
    pixel_data_vr: Optional[str] = None
    image_dimensions: Optional[Dimensions] = None
    number_of_frames: Optional[int] = None
    bits_allocated: Optional[int] = None
    samples_per_pixel: Optional[int] = None
    photometric_interpretation: Optional[str] = None
    pixel_representation: Optional[int] = None

    # Error tracking
    parse_error: Optional[str] = None
    pixel_decode_error: Optional[str] = None
    pixel_convert_error: Optional[str] = None
    pixel_encode_error: Optional[str] = None

    @property
    def pixel_error(self) -> Optional[str]:
        """The first pixel-stage error recorded, if any."""
        return self.pixel_decode_error or self.pixel_convert_error or self.pixel_encode_error

    def to_dict(self) -> dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        if self.image_dimensions is not None:
            data["image_dimensions"] = self.image_dimensions.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DiagnosticReport":
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        dims = kwargs.get("image_dimensions")
        if dims is not None:
            kwargs["image_dimensions"] = Dimensions(int(dims["rows"]), int(dims["columns"]))
        return cls(**kwargs)


# ---------------------------------------------------------------------------
# Output document
# ---------------------------------------------------------------------------

@dataclass
class ParseOutput:
    """The document handed back across the boundary on success."""
    attributes: list[Attribute] = field(default_factory=list)
    preview_images: Optional[list[str]] = None
    debug_info: DiagnosticReport = field(default_factory=DiagnosticReport)

    def to_dict(self) -> dict[str, Any]:
        return {
            "attributes": [a.to_dict() for a in self.attributes],
            "preview_images": list(self.preview_images) if self.preview_images is not None else None,
            "debug_info": self.debug_info.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ParseOutput":
        return cls(
            attributes=[Attribute.from_dict(a) for a in data["attributes"]],
            preview_images=data.get("preview_images"),
            debug_info=DiagnosticReport.from_dict(data["debug_info"]),
        )
