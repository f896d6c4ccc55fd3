"""
windowing.py - Modality rescale, VOI windowing and 8-bit display conversion.

WHY THIS MATTERS
----------------
Stored pixel values are rarely display values.  A CT slice stores
integers that become Hounsfield Units only after the modality rescale:

    value = stored_value * RescaleSlope + RescaleIntercept

By default the rescaled frame is then min-max normalised onto the display
range, so every preview spans full contrast whatever the header says.
With the "header" VOI mode a VOI LUT Sequence or a *window* (centre,
width) from the header picks the displayed range instead, falling back
to min-max when the header carries neither.

The result of ``frame_to_display`` is always ``uint8``.

References
----------
- DICOM PS3.3 C.11.1 Modality LUT, C.11.2 VOI LUT
- DICOM PS3.3 C.7.6.3.1.2 Photometric Interpretation
"""

import logging
from typing import Optional

import numpy as np
from pydicom.dataset import Dataset
from pydicom.pixels import apply_voi_lut

logger = logging.getLogger(__name__)

MONOCHROME1 = "MONOCHROME1"
MONOCHROME2 = "MONOCHROME2"

VOI_NORMALIZE = "normalize"
VOI_HEADER = "header"
VOI_MODES = (VOI_NORMALIZE, VOI_HEADER)


def rescale(
    pixel_array: np.ndarray,
    slope: float = 1.0,
    intercept: float = 0.0,
) -> np.ndarray:
    """
    Apply the linear modality rescale to stored pixel values.

    Parameters
    ----------
    pixel_array : np.ndarray
        Stored pixel values for one frame.
    slope : float
        RescaleSlope from the DICOM header (default 1.0).
    intercept : float
        RescaleIntercept from the DICOM header (default 0.0).

    Returns
    -------
    np.ndarray
        Float array, same shape as *pixel_array*.
    """
    return pixel_array.astype(np.float64) * slope + intercept


def apply_window(
    values: np.ndarray,
    center: float,
    width: float,
) -> np.ndarray:
    """
    Apply window/level and return values normalised to [0, 1].

    Values below (center - width/2) map to 0.
    Values above (center + width/2) map to 1.
    Everything in between is linearly scaled.
    """
    if width <= 0:
        raise ValueError(
            f"Window width must be > 0, got width={width}."
        )
    lower = center - width / 2.0
    upper = center + width / 2.0
    windowed = np.clip(values, lower, upper)
    return (windowed - lower) / (upper - lower)


def normalize_range(values: np.ndarray) -> np.ndarray:
    """Min-max normalise to [0, 1].  A constant array maps to all zeros."""
    values = values.astype(np.float64)
    lower = float(values.min()) if values.size else 0.0
    upper = float(values.max()) if values.size else 0.0
    if upper <= lower:
        return np.zeros_like(values)
    return (values - lower) / (upper - lower)


def to_uint8(unit: np.ndarray) -> np.ndarray:
    """Map a [0, 1] float array onto 0-255."""
    return np.round(np.clip(unit, 0.0, 1.0) * 255.0).astype(np.uint8)


def _first_value(value) -> float:
    # WindowCenter/Width can be a MultiValue list; take the first element
    if hasattr(value, "__iter__") and not isinstance(value, str):
        value = list(value)[0]
    return float(value)


def window_from_header(ds: Dataset) -> Optional[tuple[float, float]]:
    """Return (centre, width) from WindowCenter/WindowWidth, or None if unusable."""
    dicom_wc = getattr(ds, "WindowCenter", None)
    dicom_ww = getattr(ds, "WindowWidth", None)
    if dicom_wc is None or dicom_ww is None:
        return None
    try:
        wc, ww = _first_value(dicom_wc), _first_value(dicom_ww)
    except (TypeError, ValueError, IndexError) as exc:
        logger.debug("Ignoring malformed window (%r, %r): %s", dicom_wc, dicom_ww, exc)
        return None
    if ww <= 0:
        logger.debug("Ignoring non-positive window width %.1f", ww)
        return None
    return wc, ww


def voi_normalize(ds: Dataset, frame: np.ndarray, voi_mode: str = VOI_NORMALIZE) -> np.ndarray:
    """
    Turn one monochrome frame into [0, 1] display intensities.

    The modality rescale is always applied first.  Then, by *voi_mode*:

    - ``"normalize"`` (default): min-max over the rescaled frame.  Header
      windows and VOI LUTs are ignored, so the preview always spans the
      full display range.
    - ``"header"``: a VOI LUT Sequence if present, else WindowCenter /
      WindowWidth, else min-max.
    """
    if voi_mode not in VOI_MODES:
        raise ValueError(
            f"Unknown VOI mode '{voi_mode}'. "
            f"Choose from: {list(VOI_MODES)}"
        )

    if voi_mode == VOI_HEADER and "VOILUTSequence" in ds:
        logger.debug("Applying VOI LUT Sequence")
        return normalize_range(apply_voi_lut(frame, ds, prefer_lut=True))

    slope = float(getattr(ds, "RescaleSlope", 1.0) or 1.0)
    intercept = float(getattr(ds, "RescaleIntercept", 0.0) or 0.0)
    values = rescale(frame, slope=slope, intercept=intercept)

    window = window_from_header(ds) if voi_mode == VOI_HEADER else None
    if window is None:
        return normalize_range(values)

    wc, ww = window
    logger.debug("Applying window: centre=%.1f, width=%.1f", wc, ww)
    return apply_window(values, center=wc, width=ww)


def frame_to_display(
    ds: Dataset,
    frame: np.ndarray,
    photometric: Optional[str] = None,
    samples_per_pixel: Optional[int] = None,
    voi_mode: str = VOI_NORMALIZE,
) -> np.ndarray:
    """
    Convert one decoded frame to 8-bit display values.

    Monochrome frames go through ``voi_normalize`` and MONOCHROME1 is
    inverted so that higher values render darker.  Colour frames that are
    already 8-bit pass through untouched; deeper colour frames are
    min-max scaled.

    Parameters
    ----------
    ds : Dataset
        Dataset the frame came from (for rescale and window tags).
    frame : np.ndarray
        One frame, shape (rows, columns) or (rows, columns, samples).
    photometric : str, optional
        PhotometricInterpretation of the data.
    samples_per_pixel : int, optional
        SamplesPerPixel of the data.  Defaults to 1.
    voi_mode : str
        "normalize" (min-max over the rescaled frame) or "header"
        (VOI LUT or WindowCenter/WindowWidth from the dataset).

    Returns
    -------
    np.ndarray
        ``uint8`` array, same shape as *frame*.
    """
    samples = samples_per_pixel or 1
    if samples > 1 or frame.ndim == 3:
        if frame.dtype == np.uint8:
            return frame
        return to_uint8(normalize_range(frame))

    unit = voi_normalize(ds, frame, voi_mode)
    if photometric == MONOCHROME1:
        unit = 1.0 - unit
    return to_uint8(unit)
