"""Tests for dicom_preview/preview.py."""

import base64
import io
from unittest.mock import patch

import numpy as np
import pydicom
import pytest
from PIL import Image
from pydicom.dataset import Dataset, FileDataset
from pydicom.uid import ExplicitVRLittleEndian

from dicom_preview.config import CONFIG
from dicom_preview.diagnostics import collect_diagnostics
from dicom_preview.models import DiagnosticReport
from dicom_preview.preview import (
    BEST_EFFORT,
    FAIL_FAST,
    convert_frame,
    encode_jpeg,
    render_previews,
    select_frame,
)


def _make_ds(
    frames: int = 1,
    photometric: str = "MONOCHROME2",
    rows: int = 8,
    columns: int = 10,
) -> Dataset:
    """Build an in-memory 8-bit image dataset with pixel_array support."""
    file_meta = pydicom.Dataset()
    file_meta.MediaStorageSOPClassUID = pydicom.uid.UID("1.2.840.10008.5.1.4.1.1.7")
    file_meta.MediaStorageSOPInstanceUID = pydicom.uid.generate_uid()
    file_meta.TransferSyntaxUID = ExplicitVRLittleEndian

    ds = FileDataset(filename_or_obj=None, dataset={}, file_meta=file_meta, preamble=b"\0" * 128)
    samples = 3 if photometric == "RGB" else 1
    rng = np.random.default_rng(frames)
    shape = (frames, rows, columns) + ((3,) if samples == 3 else ())
    pixels = rng.integers(0, 255, size=shape, dtype=np.uint8)

    ds.Rows = rows
    ds.Columns = columns
    ds.SamplesPerPixel = samples
    ds.PhotometricInterpretation = photometric
    ds.PixelRepresentation = 0
    ds.BitsAllocated = 8
    ds.BitsStored = 8
    ds.HighBit = 7
    if samples == 3:
        ds.PlanarConfiguration = 0
    if frames > 1:
        ds.NumberOfFrames = frames
    ds.PixelData = pixels.tobytes()
    return ds


def _render(ds: Dataset, **kwargs):
    report = collect_diagnostics(ds)
    return render_previews(ds, report, **kwargs), report


def _open(encoded: str) -> Image.Image:
    return Image.open(io.BytesIO(base64.b64decode(encoded)))


class TestRenderPreviews:
    def test_single_monochrome_frame(self):
        previews, report = _render(_make_ds())
        assert len(previews) == 1
        image = _open(previews[0])
        assert image.format == "JPEG"
        assert image.mode == "L"
        assert image.size == (10, 8)
        assert report.pixel_error is None

    def test_one_preview_per_frame(self):
        previews, _ = _render(_make_ds(frames=3))
        assert len(previews) == 3
        assert all(_open(p).mode == "L" for p in previews)

    def test_rgb_frame_encoded_as_rgb(self):
        previews, _ = _render(_make_ds(photometric="RGB"))
        assert _open(previews[0]).mode == "RGB"

    def test_monochrome1_encoded_as_rgb(self):
        previews, _ = _render(_make_ds(photometric="MONOCHROME1"))
        assert _open(previews[0]).mode == "RGB"

    def test_missing_samples_per_pixel_encoded_as_rgb(self):
        ds = _make_ds()
        report = collect_diagnostics(ds)
        report.samples_per_pixel = None
        previews = render_previews(ds, report)
        assert _open(previews[0]).mode == "RGB"

    def test_frame_count_defaults_to_one(self):
        ds = _make_ds()
        report = collect_diagnostics(ds)
        assert report.number_of_frames is None
        assert len(render_previews(ds, report)) == 1

    def test_zero_frames_gives_none(self):
        ds = _make_ds()
        report = collect_diagnostics(ds)
        report.number_of_frames = 0
        assert render_previews(ds, report) is None
        assert report.pixel_error is None

    def test_unknown_policy_raises(self):
        with pytest.raises(ValueError, match="Unknown frame policy"):
            render_previews(_make_ds(), DiagnosticReport(), frame_policy="sometimes")


class TestStageFailures:
    def test_decode_failure(self):
        ds = Dataset()
        ds.Modality = "CT"
        previews, report = _render(ds)
        assert previews is None
        assert report.pixel_decode_error.startswith("Pixel data decode error:")
        assert report.pixel_convert_error is None
        assert report.pixel_encode_error is None

    def test_convert_failure_on_second_frame_discards_all(self):
        real_convert = convert_frame

        def fail_second(ds, pixels, index, report):
            if index == 1:
                raise ValueError("bad frame")
            return real_convert(ds, pixels, index, report)

        with patch("dicom_preview.preview.convert_frame", side_effect=fail_second):
            previews, report = _render(_make_ds(frames=3))

        assert previews is None
        assert "frame 1" in report.pixel_convert_error
        assert "bad frame" in report.pixel_convert_error
        assert report.pixel_decode_error is None
        assert report.pixel_encode_error is None

    def test_best_effort_keeps_good_frames(self):
        real_convert = convert_frame

        def fail_second(ds, pixels, index, report):
            if index == 1:
                raise ValueError("bad frame")
            return real_convert(ds, pixels, index, report)

        with patch("dicom_preview.preview.convert_frame", side_effect=fail_second):
            previews, report = _render(_make_ds(frames=3), frame_policy=BEST_EFFORT)

        assert len(previews) == 2
        assert "frame 1" in report.pixel_convert_error

    def test_encode_failure(self):
        with patch("dicom_preview.preview.encode_jpeg", side_effect=OSError("encoder broke")):
            previews, report = _render(_make_ds(), frame_policy=FAIL_FAST)

        assert previews is None
        assert report.pixel_encode_error.startswith("JPEG encoding error for frame 0:")
        assert report.pixel_convert_error is None

    def test_only_first_error_recorded(self):
        with patch("dicom_preview.preview.encode_jpeg", side_effect=OSError("encoder broke")):
            ds = _make_ds(frames=2)
            report = collect_diagnostics(ds)
            report.number_of_frames = 3
            previews = render_previews(ds, report, frame_policy=BEST_EFFORT)

        assert previews is None
        assert "frame 0" in report.pixel_encode_error
        assert report.pixel_convert_error is None

    def test_declared_frames_beyond_payload(self):
        ds = _make_ds()
        report = collect_diagnostics(ds)
        report.number_of_frames = 2
        assert render_previews(ds, report) is None
        assert "frame 1" in report.pixel_convert_error


class TestVoiMode:
    def _convert(self):
        ds = _make_ds()
        ds.WindowCenter = 2.0
        ds.WindowWidth = 4.0
        report = collect_diagnostics(ds)
        return np.asarray(convert_frame(ds, ds.pixel_array, 0, report))

    def test_narrow_window_ignored_by_default(self):
        pixels = self._convert()
        assert pixels.min() == 0
        assert pixels.max() == 255
        assert len(np.unique(pixels)) > 16

    def test_header_mode_from_config(self):
        with patch.dict(CONFIG["preview"], {"voi": "header"}):
            pixels = self._convert()
        assert len(np.unique(pixels)) <= 5


class TestHelpers:
    def test_select_frame_from_stack(self):
        pixels = np.arange(24).reshape(2, 3, 4)
        np.testing.assert_array_equal(select_frame(pixels, 1, 1), pixels[1])

    def test_select_frame_single(self):
        pixels = np.zeros((3, 4))
        assert select_frame(pixels, 0, 1) is pixels

    def test_select_frame_out_of_range(self):
        with pytest.raises(IndexError):
            select_frame(np.zeros((2, 3, 4)), 2, 1)

    def test_select_colour_frame(self):
        pixels = np.zeros((3, 4, 3))
        assert select_frame(pixels, 0, 3).shape == (3, 4, 3)

    def test_quality_changes_size(self):
        noise = np.random.default_rng(1).integers(0, 255, size=(64, 64), dtype=np.uint8)
        image = Image.fromarray(noise)
        assert len(encode_jpeg(image, quality=95)) > len(encode_jpeg(image, quality=10))
