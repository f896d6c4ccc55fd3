"""
inspect_file.py - Parse one DICOM file and print what the parser sees.

Usage
-----
    python scripts/inspect_file.py path/to/file.dcm [preview_folder]

Prints the indented attribute tree and the diagnostic report.  If a
preview folder is given, every rendered frame is written there as
frame_000.jpg, frame_001.jpg, ...
"""

import logging
import os
import sys

# Ensure repo root is on sys.path regardless of launch directory
_REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _REPO_ROOT)

from dicom_preview.boundary import DicomParser  # noqa: E402
from dicom_preview.errors import DicomPreviewError  # noqa: E402
from dicom_preview.models import Attribute, Group  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)-8s %(message)s",
)
logger = logging.getLogger(__name__)


def _print_attributes(attributes: list[Attribute]) -> None:
    for attr in attributes:
        indent = "    " * attr.depth
        if isinstance(attr.value, Group):
            print(f"{indent}{attr.tag} {attr.name} [{attr.vr}] ({len(attr.value.content)} entries)")
            _print_attributes(attr.value.content)
        else:
            print(f"{indent}{attr.tag} {attr.name} [{attr.vr}] = {attr.value.content}")


def main(path: str, preview_folder: str = "") -> int:
    try:
        result = DicomParser.parse_file(path)
    except DicomPreviewError as exc:
        logger.error("%s", exc)
        logger.error("Reason: %s", exc.failure_reason)
        logger.error("Suggestion: %s", exc.recovery_suggestion)
        return 1

    print("=" * 60)
    print("ATTRIBUTES")
    print("=" * 60)
    _print_attributes(result.attributes)

    print("=" * 60)
    print("DIAGNOSTICS")
    print("=" * 60)
    for key, value in result.debug_info.to_dict().items():
        if key == "file_preamble":
            continue
        print(f"{key:28s}: {value}")

    print(f"{'preview frames':28s}: {len(result.preview_image_data)}")
    if preview_folder:
        os.makedirs(preview_folder, exist_ok=True)
        for index, jpeg in enumerate(result.preview_image_data):
            out_path = os.path.join(preview_folder, f"frame_{index:03d}.jpg")
            with open(out_path, "wb") as f:
                f.write(jpeg)
            logger.info("Saved %s", out_path)
    return 0


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(2)
    sys.exit(main(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else ""))
