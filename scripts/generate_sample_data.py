"""
generate_sample_data.py - Create synthetic DICOM files for trying the parser.

Writes a handful of small files to data/samples/, each exercising a
different path through the parser:

    meta_only.dcm        file meta group only, no pixel data
    mono_single.dcm      one MONOCHROME2 frame with a window in the header
    mono_multiframe.dcm  three MONOCHROME2 frames
    rgb_single.dcm       one RGB frame
    nested_sequences.dcm three levels of nested sequences

Usage
-----
    python scripts/generate_sample_data.py [output_folder]

Then try:
    python scripts/inspect_file.py data/samples/nested_sequences.dcm
"""

import os
import sys

import numpy as np
import pydicom
from pydicom.dataset import Dataset, FileDataset
from pydicom.sequence import Sequence
from pydicom.uid import ExplicitVRLittleEndian

_REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
OUTPUT_FOLDER = os.path.join(_REPO_ROOT, "data", "samples")

_CT_IMAGE_STORAGE = "1.2.840.10008.5.1.4.1.1.2"
_SECONDARY_CAPTURE = "1.2.840.10008.5.1.4.1.1.7"


def _new_file_dataset(path: str, sop_class: str = _CT_IMAGE_STORAGE) -> FileDataset:
    file_meta = pydicom.Dataset()
    file_meta.MediaStorageSOPClassUID = pydicom.uid.UID(sop_class)
    file_meta.MediaStorageSOPInstanceUID = pydicom.uid.generate_uid()
    file_meta.TransferSyntaxUID = ExplicitVRLittleEndian
    return FileDataset(path, {}, file_meta=file_meta, preamble=b"\0" * 128)


def _set_pixels(ds: Dataset, pixels: np.ndarray, photometric: str, frames: int = 1) -> None:
    """Attach uint8 pixel data.  *pixels* is (frames, rows, cols[, 3]) or a single frame."""
    samples = 3 if photometric == "RGB" else 1
    ds.Rows = pixels.shape[-3] if samples == 3 else pixels.shape[-2]
    ds.Columns = pixels.shape[-2] if samples == 3 else pixels.shape[-1]
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
    ds.PixelData = pixels.astype(np.uint8).tobytes()


def _gradient(size: int, seed: int) -> np.ndarray:
    rng = np.random.default_rng(seed)
    ramp = np.linspace(0, 200, size * size).reshape(size, size)
    return (ramp + rng.normal(0, 10, size=(size, size))).clip(0, 255)


def make_meta_only(path: str) -> None:
    _new_file_dataset(path).save_as(path)


def make_mono_single(path: str, size: int = 64) -> None:
    ds = _new_file_dataset(path)
    ds.Modality = "CT"
    ds.PatientName = "Synthetic^Mono"
    ds.WindowCenter = 100.0
    ds.WindowWidth = 200.0
    _set_pixels(ds, _gradient(size, seed=1), "MONOCHROME2")
    ds.save_as(path)


def make_mono_multiframe(path: str, size: int = 32, frames: int = 3) -> None:
    ds = _new_file_dataset(path, _SECONDARY_CAPTURE)
    ds.Modality = "OT"
    stack = np.stack([_gradient(size, seed=i) for i in range(frames)])
    _set_pixels(ds, stack, "MONOCHROME2", frames=frames)
    ds.save_as(path)


def make_rgb_single(path: str, size: int = 32) -> None:
    ds = _new_file_dataset(path, _SECONDARY_CAPTURE)
    ds.Modality = "OT"
    gray = _gradient(size, seed=7)
    rgb = np.stack([gray, gray[::-1], np.full_like(gray, 128)], axis=-1)
    _set_pixels(ds, rgb, "RGB")
    ds.save_as(path)


def make_nested_sequences(path: str) -> None:
    ds = _new_file_dataset(path)
    ds.Modality = "CT"

    innermost = Dataset()
    innermost.CodeValue = "INNER"
    middle = Dataset()
    middle.CodeValue = "MIDDLE"
    middle.ConceptNameCodeSequence = Sequence([innermost])
    outer = Dataset()
    outer.CodeValue = "OUTER"
    outer.CodingSchemeDesignator = "DCM"
    outer.ContentSequence = Sequence([middle])

    ds.ContentSequence = Sequence([outer, outer])
    ds.save_as(path)


_SAMPLES = [
    ("meta_only.dcm", make_meta_only),
    ("mono_single.dcm", make_mono_single),
    ("mono_multiframe.dcm", make_mono_multiframe),
    ("rgb_single.dcm", make_rgb_single),
    ("nested_sequences.dcm", make_nested_sequences),
]


def generate(output_folder: str = OUTPUT_FOLDER) -> list[str]:
    """Generate all sample files into *output_folder* and return their paths."""
    os.makedirs(output_folder, exist_ok=True)

    print(f"Writing {len(_SAMPLES)} synthetic DICOM files to: {output_folder}")
    print("-" * 60)

    paths = []
    for i, (filename, factory) in enumerate(_SAMPLES, start=1):
        path = os.path.join(output_folder, filename)
        factory(path)
        paths.append(path)
        print(f"  [{i:02d}/{len(_SAMPLES)}] {filename}")

    print("-" * 60)
    print("Done.  Inspect a file with:")
    print(f"  python scripts/inspect_file.py {paths[-1]}")
    return paths


if __name__ == "__main__":
    generate(sys.argv[1] if len(sys.argv) > 1 else OUTPUT_FOLDER)
