"""Tests for ScanConfig validation and load_config parsing."""

import importlib
import json
import logging

import pytest

from qr_session.scanner import ConfigError, DEFAULT_SCAN_CONFIG, ScanConfig, effective_config, load_config
from qr_session.scanner.config import as_dict


class TestScanConfig:

    def test_defaults(self):
        config = ScanConfig()
        assert config.frame_rate == 10.0
        assert config.scan_box == 250
        assert config.scan_box_size == (250, 250)
        assert config.aspect_ratio is None
        assert config.disable_flip is False
        assert config.enable_file_scan is True
        assert config.miss_report_interval == 0.0
        assert config.frame_interval == pytest.approx(0.1)

    def test_rectangular_box(self):
        assert ScanConfig(scan_box=(300, 200)).scan_box_size == (300, 200)

    def test_full_frame_box(self):
        assert ScanConfig(scan_box=None).scan_box_size is None

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"frame_rate": 0},
            {"frame_rate": -5},
            {"frame_rate": True},
            {"scan_box": 0},
            {"scan_box": (100, -1)},
            {"aspect_ratio": 0},
            {"miss_report_interval": -1},
        ],
    )
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ConfigError):
            ScanConfig(**kwargs)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            ScanConfig(frame_rate=0)

    def test_with_overrides_skips_none(self):
        config = ScanConfig(scan_box=(300, 200)).with_overrides(frame_rate=5, disable_flip=None)
        assert config.frame_rate == 5.0
        assert config.scan_box == (300, 200)
        assert config.disable_flip is False

    def test_module_level_defaults_build_on_import(self):
        module = importlib.import_module("qr_session.scanner.config")
        scanner = importlib.import_module("qr_session.scanner")
        assert module.DEFAULT_SCAN_CONFIG == ScanConfig()
        assert module.DEFAULT_SCAN_CONFIG.scan_box_size == (250, 250)
        assert scanner.DEFAULT_SCAN_CONFIG == module.DEFAULT_SCAN_CONFIG

    def test_effective_config(self):
        custom = ScanConfig(frame_rate=2)
        assert effective_config(None) is DEFAULT_SCAN_CONFIG
        assert effective_config(custom) is custom

    def test_as_dict_lists_box(self):
        data = as_dict(ScanConfig(scan_box=(320, 240)))
        assert data["scan_box"] == [320, 240]
        json.dumps(data)


class TestLoadConfig:

    def test_empty_source_gives_defaults(self):
        assert load_config() == ScanConfig()
        assert load_config({}) == ScanConfig()

    def test_camel_case_aliases(self):
        config = load_config(
            {
                "fps": 15,
                "qrbox": 200,
                "aspectRatio": 1.777,
                "disableFlip": True,
                "enableFileScan": False,
                "missReportInterval": 2,
            }
        )
        assert config == ScanConfig(
            frame_rate=15.0,
            scan_box=200,
            aspect_ratio=1.777,
            disable_flip=True,
            enable_file_scan=False,
            miss_report_interval=2.0,
        )

    def test_snake_case_names(self):
        config = load_config({"frame_rate": "3", "scan_box": "320x240", "disable_flip": "yes"})
        assert config.frame_rate == 3.0
        assert config.scan_box == (320, 240)
        assert config.disable_flip is True

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (180, 180),
            ("180", 180),
            ([300, 200], (300, 200)),
            ({"width": 300, "height": 200}, (300, 200)),
            ("300 x 200", (300, 200)),
            (None, None),
            (False, None),
        ],
    )
    def test_scan_box_forms(self, raw, expected):
        assert load_config({"qrbox": raw}).scan_box == expected

    def test_bad_scan_box_rejected(self):
        with pytest.raises(ConfigError):
            load_config({"qrbox": "wide"})

    def test_bad_number_rejected(self):
        with pytest.raises(ConfigError):
            load_config({"fps": "fast"})

    def test_overrides_win_and_skip_none(self):
        config = load_config({"fps": 15, "qrbox": 200}, {"frame_rate": 4, "scan_box": None})
        assert config.frame_rate == 4.0
        assert config.scan_box == 200

    def test_unknown_keys_logged(self, caplog):
        with caplog.at_level(logging.WARNING):
            config = load_config({"fps": 12, "videoConstraints": {}})
        assert config.frame_rate == 12.0
        assert "videoConstraints" in caplog.text

    def test_json_file(self, tmp_path):
        path = tmp_path / "scanner.json"
        path.write_text(json.dumps({"fps": 20, "qrbox": [100, 80]}), encoding="utf-8")
        config = load_config(path)
        assert config.frame_rate == 20.0
        assert config.scan_box == (100, 80)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ConfigError, match="Cannot read"):
            load_config(tmp_path / "absent.json")

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{fps: 10", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid JSON"):
            load_config(str(path))

    def test_non_object_json_raises(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ConfigError, match="JSON object"):
            load_config(path)
