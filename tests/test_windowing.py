"""Tests for dicom_preview/windowing.py."""

import numpy as np
import pytest
from pydicom.dataset import Dataset

from dicom_preview.windowing import (
    VOI_HEADER,
    apply_window,
    frame_to_display,
    normalize_range,
    rescale,
    to_uint8,
    voi_normalize,
    window_from_header,
)


def _make_ds(**kwargs) -> Dataset:
    ds = Dataset()
    for key, value in kwargs.items():
        setattr(ds, key, value)
    return ds


class TestRescale:
    def test_known_conversion(self):
        pixels = np.array([[0, 100], [200, 1000]], dtype=np.float64)
        values = rescale(pixels, slope=1.0, intercept=-1024.0)
        np.testing.assert_array_almost_equal(values, pixels - 1024.0)

    def test_default_slope_intercept(self):
        pixels = np.array([[5, 10]], dtype=np.uint16)
        np.testing.assert_array_equal(rescale(pixels), pixels.astype(np.float64))


class TestWindowing:
    def test_output_in_zero_one_range(self):
        values = np.linspace(-1000, 2000, 100)
        windowed = apply_window(values, center=40, width=80)
        assert windowed.min() >= 0.0
        assert windowed.max() <= 1.0

    def test_clip_below_lower_is_zero(self):
        assert apply_window(np.array([-2000.0]), center=40, width=80)[0] == 0.0

    def test_clip_above_upper_is_one(self):
        assert apply_window(np.array([5000.0]), center=40, width=80)[0] == 1.0

    def test_center_maps_to_half(self):
        assert abs(apply_window(np.array([40.0]), center=40, width=80)[0] - 0.5) < 1e-9

    def test_non_positive_width_raises(self):
        with pytest.raises(ValueError, match="Window width"):
            apply_window(np.array([1.0]), center=0, width=0)


class TestNormalize:
    def test_min_max(self):
        result = normalize_range(np.array([10, 20, 30]))
        np.testing.assert_array_almost_equal(result, [0.0, 0.5, 1.0])

    def test_constant_array_is_zero(self):
        result = normalize_range(np.full((2, 2), 7))
        assert not result.any()

    def test_to_uint8(self):
        result = to_uint8(np.array([0.0, 0.5, 1.0, 1.5]))
        assert result.dtype == np.uint8
        assert list(result) == [0, 128, 255, 255]


class TestWindowFromHeader:
    def test_single_values(self):
        assert window_from_header(_make_ds(WindowCenter=40.0, WindowWidth=400.0)) == (40.0, 400.0)

    def test_multi_value_takes_first(self):
        ds = _make_ds(WindowCenter=[40.0, 300.0], WindowWidth=[400.0, 1500.0])
        assert window_from_header(ds) == (40.0, 400.0)

    def test_missing_width(self):
        assert window_from_header(_make_ds(WindowCenter=40.0)) is None

    def test_zero_width_ignored(self):
        assert window_from_header(_make_ds(WindowCenter=40.0, WindowWidth=0.0)) is None


class TestVoiNormalize:
    def test_header_window_ignored_by_default(self):
        ds = _make_ds(WindowCenter=40.0, WindowWidth=80.0)
        result = voi_normalize(ds, np.array([-1000.0, 40.0, 5000.0]))
        np.testing.assert_array_almost_equal(result, [0.0, 1040.0 / 6000.0, 1.0])

    def test_header_window_used_in_header_mode(self):
        ds = _make_ds(WindowCenter=40.0, WindowWidth=80.0)
        result = voi_normalize(ds, np.array([-1000.0, 40.0, 5000.0]), VOI_HEADER)
        np.testing.assert_array_almost_equal(result, [0.0, 0.5, 1.0])

    def test_rescale_applied_before_window(self):
        ds = _make_ds(RescaleSlope=1.0, RescaleIntercept=-1024.0, WindowCenter=40.0, WindowWidth=80.0)
        result = voi_normalize(ds, np.array([1064.0]), VOI_HEADER)
        assert abs(result[0] - 0.5) < 1e-9

    def test_rescale_applied_before_min_max(self):
        ds = _make_ds(RescaleSlope=-1.0, RescaleIntercept=0.0)
        result = voi_normalize(ds, np.array([0.0, 10.0]))
        np.testing.assert_array_almost_equal(result, [1.0, 0.0])

    def test_min_max_without_window(self):
        result = voi_normalize(Dataset(), np.array([[0, 50], [100, 200]], dtype=np.uint16))
        assert result.min() == 0.0
        assert result.max() == 1.0

    def test_header_mode_without_window_falls_back(self):
        result = voi_normalize(Dataset(), np.array([10.0, 30.0]), VOI_HEADER)
        np.testing.assert_array_almost_equal(result, [0.0, 1.0])

    def test_unknown_mode_raises(self):
        with pytest.raises(ValueError, match="Unknown VOI mode"):
            voi_normalize(Dataset(), np.array([1.0]), "linear")


class TestFrameToDisplay:
    def test_narrow_header_window_still_spans_full_range(self):
        ds = _make_ds(WindowCenter=2.0, WindowWidth=4.0)
        frame = np.arange(16, dtype=np.uint16).reshape(4, 4)
        result = frame_to_display(ds, frame, "MONOCHROME2", 1)
        assert result.min() == 0
        assert result.max() == 255
        assert len(np.unique(result)) == 16

    def test_narrow_header_window_saturates_in_header_mode(self):
        ds = _make_ds(WindowCenter=2.0, WindowWidth=4.0)
        frame = np.arange(16, dtype=np.uint16).reshape(4, 4)
        result = frame_to_display(ds, frame, "MONOCHROME2", 1, voi_mode=VOI_HEADER)
        assert (result.ravel()[4:] == 255).all()

    def test_monochrome2_is_uint8(self):
        frame = np.arange(16, dtype=np.uint16).reshape(4, 4)
        result = frame_to_display(Dataset(), frame, "MONOCHROME2", 1)
        assert result.dtype == np.uint8
        assert result.shape == (4, 4)
        assert result[0, 0] == 0
        assert result[3, 3] == 255

    def test_monochrome1_inverted(self):
        frame = np.arange(16, dtype=np.uint16).reshape(4, 4)
        result = frame_to_display(Dataset(), frame, "MONOCHROME1", 1)
        assert result[0, 0] == 255
        assert result[3, 3] == 0

    def test_rgb_uint8_passthrough(self):
        frame = np.random.default_rng(0).integers(0, 255, size=(4, 4, 3), dtype=np.uint8)
        result = frame_to_display(Dataset(), frame, "RGB", 3)
        np.testing.assert_array_equal(result, frame)

    def test_rgb_16_bit_scaled(self):
        frame = np.zeros((2, 2, 3), dtype=np.uint16)
        frame[1, 1] = 4000
        result = frame_to_display(Dataset(), frame, "RGB", 3)
        assert result.dtype == np.uint8
        assert result.max() == 255
