"""
Unit tests for settings models and persistence.
"""

import json

import pytest

from atx_inspector.core import (
    AppSettings,
    DecoderSettings,
    ReportSettings,
    SettingsError,
    UnknownChunkPolicy,
    get_settings_dir,
    load_settings,
    save_settings,
)


class TestDefaults:
    """Test default values."""

    def test_decoder_defaults(self):
        settings = DecoderSettings()
        assert settings.verbose is False
        assert settings.unknown_chunk_policy is UnknownChunkPolicy.ABORT_TRACK
        assert settings.nominal_track_count == 40

    def test_report_defaults(self):
        settings = ReportSettings()
        assert settings.hex_bytes_per_line == 16
        assert settings.show_notes is True
        assert settings.show_sectors is False

    def test_app_defaults(self):
        settings = AppSettings()
        assert settings.log_level == "INFO"
        assert settings.log_file is None


class TestValidation:
    """Test field validation."""

    def test_log_level_normalised(self):
        assert AppSettings(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValueError):
            AppSettings(log_level="chatty")

    def test_policy_from_string(self):
        settings = DecoderSettings(unknown_chunk_policy="skip_chunk")
        assert settings.unknown_chunk_policy is UnknownChunkPolicy.SKIP_CHUNK

    @pytest.mark.parametrize("value", [4, 65])
    def test_hex_width_bounds(self, value):
        with pytest.raises(ValueError):
            ReportSettings(hex_bytes_per_line=value)

    def test_extra_fields_rejected(self):
        with pytest.raises(ValueError):
            DecoderSettings(strict=True)


class TestPersistence:
    """Test loading and saving settings files."""

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_settings(tmp_path / "absent.json") == AppSettings()

    def test_round_trip(self, tmp_path):
        settings = AppSettings(
            decoder=DecoderSettings(verbose=True,
                                    unknown_chunk_policy=UnknownChunkPolicy.SKIP_CHUNK),
            report=ReportSettings(show_layout=True),
            log_level="WARNING",
        )
        path = save_settings(settings, tmp_path / "nested" / "settings.json")

        assert path.exists()
        assert load_settings(path) == settings

    def test_partial_file(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"decoder": {"verbose": True}}))

        settings = load_settings(path)
        assert settings.decoder.verbose is True
        assert settings.report == ReportSettings()

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json")
        with pytest.raises(SettingsError):
            load_settings(path)

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"decoder": {"nominal_track_count": 0}}))
        with pytest.raises(SettingsError):
            load_settings(path)

    def test_settings_dir_follows_xdg(self, tmp_path, monkeypatch):
        monkeypatch.setattr("sys.platform", "linux")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert get_settings_dir() == tmp_path / "atx-inspector"
