"""Tests for dicom_preview/config.py."""

from dicom_preview.config import load_config


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(str(tmp_path / "absent.yaml"))
        assert config["attribute_tree"]["max_depth"] == 2
        assert config["preview"]["jpeg_quality"] == 60
        assert config["preview"]["frame_policy"] == "fail_fast"
        assert config["preview"]["voi"] == "normalize"
        assert config["header_scan"]["header_length"] == 256

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(str(path))["header_scan"]["uid_max_length"] == 64

    def test_override_merges_with_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("preview:\n  frame_policy: best_effort\n")
        config = load_config(str(path))
        assert config["preview"]["frame_policy"] == "best_effort"
        assert config["preview"]["jpeg_quality"] == 60
        assert config["attribute_tree"]["max_depth"] == 2
