"""
preview.py - Render embedded pixel data as base64 JPEG previews.

One JPEG per frame.  The work is split into three stages, each with its
own error field on the diagnostic report:

    decode   - ``ds.pixel_array`` for all frames at once
    convert  - pick the frame, VOI-normalise to 8 bit, choose L or RGB
    encode   - JPEG via Pillow

Only the first failing stage records its message.  Under the default
``fail_fast`` policy any frame failure discards every preview from the
call; ``best_effort`` keeps the frames that did render.
"""

import base64
import io
import logging
from typing import Optional

import numpy as np
from PIL import Image
from pydicom.dataset import Dataset

from dicom_preview.config import CONFIG
from dicom_preview.models import DiagnosticReport
from dicom_preview.windowing import MONOCHROME2, frame_to_display

logger = logging.getLogger(__name__)

FAIL_FAST = "fail_fast"
BEST_EFFORT = "best_effort"
FRAME_POLICIES = (FAIL_FAST, BEST_EFFORT)


def decode_pixels(ds: Dataset) -> np.ndarray:
    """Decode the whole pixel payload (every frame) with pydicom."""
    return ds.pixel_array


def select_frame(pixels: np.ndarray, index: int, samples_per_pixel: Optional[int]) -> np.ndarray:
    """
    Pick frame *index* out of a decoded pixel array.

    pydicom drops the frame axis for single-frame data, so a 2-D (or 3-D
    colour) array only has frame 0.
    """
    frame_ndim = 3 if (samples_per_pixel or 1) > 1 else 2
    if pixels.ndim == frame_ndim + 1:
        if not 0 <= index < pixels.shape[0]:
            raise IndexError(
                f"Frame {index} out of range for {pixels.shape[0]} decoded frames"
            )
        return pixels[index]
    if pixels.ndim == frame_ndim and index == 0:
        return pixels
    raise ValueError(f"Frame {index} not available in pixel array of shape {pixels.shape}")


def to_preview_image(
    frame8: np.ndarray,
    photometric: Optional[str],
    samples_per_pixel: Optional[int],
) -> Image.Image:
    """
    Build a Pillow image in the colour layout used for the preview.

    Only MONOCHROME2 with one sample per pixel stays single channel
    (mode ``L``); everything else is encoded as RGB.
    """
    image = Image.fromarray(frame8)
    if photometric == MONOCHROME2 and samples_per_pixel == 1:
        return image.convert("L")
    return image.convert("RGB")


def encode_jpeg(image: Image.Image, quality: int = 60) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def convert_frame(
    ds: Dataset,
    pixels: np.ndarray,
    index: int,
    report: DiagnosticReport,
) -> Image.Image:
    """Run the convert stage for one frame: select, VOI-normalise, pick colour layout."""
    frame = select_frame(pixels, index, report.samples_per_pixel)
    frame8 = frame_to_display(
        ds,
        frame,
        photometric=report.photometric_interpretation,
        samples_per_pixel=report.samples_per_pixel,
        voi_mode=CONFIG["preview"]["voi"],
    )
    return to_preview_image(frame8, report.photometric_interpretation, report.samples_per_pixel)


def _record(report: DiagnosticReport, field_name: str, message: str) -> None:
    # Only the first failing stage of a call keeps its message
    if report.pixel_error is None:
        setattr(report, field_name, message)


def render_previews(
    ds: Dataset,
    report: DiagnosticReport,
    jpeg_quality: Optional[int] = None,
    frame_policy: Optional[str] = None,
) -> Optional[list[str]]:
    """
    Render every frame of *ds* as a base64-encoded JPEG.

    Parameters
    ----------
    ds : Dataset
        Decoded dataset.
    report : DiagnosticReport
        Supplies frame count and photometric hints; receives pixel-stage errors.
    jpeg_quality : int, optional
        JPEG quality.  Defaults to config value (60).
    frame_policy : str, optional
        ``"fail_fast"`` or ``"best_effort"``.  Defaults to config value.

    Returns
    -------
    list[str] or None
        One base64 string per frame, or None if nothing rendered.
    """
    jpeg_quality = jpeg_quality if jpeg_quality is not None else CONFIG["preview"]["jpeg_quality"]
    frame_policy = frame_policy or CONFIG["preview"]["frame_policy"]
    if frame_policy not in FRAME_POLICIES:
        raise ValueError(
            f"Unknown frame policy '{frame_policy}'. "
            f"Choose from: {list(FRAME_POLICIES)}"
        )

    try:
        pixels = decode_pixels(ds)
    except Exception as exc:
        _record(report, "pixel_decode_error", f"Pixel data decode error: {exc!r}")
        logger.warning("Pixel data decode failed: %s", exc)
        return None

    num_frames = report.number_of_frames if report.number_of_frames is not None else 1
    frames: list[str] = []

    for index in range(num_frames):
        try:
            image = convert_frame(ds, pixels, index, report)
        except Exception as exc:
            _record(report, "pixel_convert_error", f"Image conversion error for frame {index}: {exc!r}")
            logger.warning("Conversion failed for frame %d: %s", index, exc)
            if frame_policy == FAIL_FAST:
                return None
            continue

        try:
            jpeg = encode_jpeg(image, quality=jpeg_quality)
        except Exception as exc:
            _record(report, "pixel_encode_error", f"JPEG encoding error for frame {index}: {exc!r}")
            logger.warning("JPEG encoding failed for frame %d: %s", index, exc)
            if frame_policy == FAIL_FAST:
                return None
            continue

        frames.append(base64.b64encode(jpeg).decode("ascii"))

    logger.debug("Rendered %d/%d preview frames", len(frames), num_frames)
    return frames or None
