"""Unit tests for CallScribeConfig."""

from pathlib import Path

import pytest

from callscribe.config import CallScribeConfig
from callscribe.errors import ConfigError


def write_config(directory, text):
    path = Path(directory) / "callscribe.yaml"
    path.write_text(text)
    return path


@pytest.mark.unit
class TestCallScribeConfig:

    def test_defaults_without_file(self, temp_data_dir, monkeypatch):
        monkeypatch.chdir(temp_data_dir)
        monkeypatch.delenv("SUPABASE_URL", raising=False)

        config = CallScribeConfig()

        assert config.config_file is None
        assert config.get('transcription.backend') == 'http'
        assert config.get('supabase.max_retries') == 2
        assert config.get('supabase.url') is None

    def test_file_overrides_defaults(self, temp_data_dir):
        path = write_config(temp_data_dir, (
            "transcription:\n"
            "  backend: google\n"
            "analysis:\n"
            "  sentiment_margin: 1.5\n"
        ))

        config = CallScribeConfig(str(path))

        assert config.get('transcription.backend') == 'google'
        assert config.get('transcription.num_speakers') == 2
        assert config.get('analysis.sentiment_margin') == 1.5

    def test_relative_paths_resolve_against_config_file(self, temp_data_dir):
        path = write_config(temp_data_dir, "storage:\n  data_directory: transcripts_out\n")

        config = CallScribeConfig(str(path))

        assert config.get('storage.data_directory') == str(Path(temp_data_dir) / "transcripts_out")
        assert config.get('logging.file_path') == str(Path(temp_data_dir) / "data/logs/callscribe.log")

    def test_missing_file_raises(self, temp_data_dir):
        with pytest.raises(ConfigError, match="not found"):
            CallScribeConfig(str(Path(temp_data_dir) / "nope.yaml"))

    def test_invalid_yaml_raises(self, temp_data_dir):
        path = write_config(temp_data_dir, "storage: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            CallScribeConfig(str(path))

    def test_empty_file_raises(self, temp_data_dir):
        path = write_config(temp_data_dir, "")
        with pytest.raises(ConfigError, match="empty"):
            CallScribeConfig(str(path))

    def test_environment_overrides(self, temp_data_dir, monkeypatch):
        path = write_config(temp_data_dir, "supabase:\n  url: https://from-file.supabase.co\n")
        monkeypatch.setenv("SUPABASE_URL", "https://from-env.supabase.co")
        monkeypatch.setenv("SUPABASE_KEY", "service-key")

        config = CallScribeConfig(str(path))

        assert config.get('supabase.url') == "https://from-env.supabase.co"
        assert config.get('supabase.key') == "service-key"

    def test_get_and_set_dot_paths(self):
        config = CallScribeConfig.from_dict({})
        config.set('transcription.api_key', 'abc')
        config.set('custom.nested.value', 3)

        assert config.get('transcription.api_key') == 'abc'
        assert config.get('custom.nested.value') == 3
        assert config.get('custom.missing', 'fallback') == 'fallback'

    def test_require(self):
        config = CallScribeConfig.from_dict({"supabase": {"url": ""}})
        with pytest.raises(ConfigError):
            config.require('supabase.url')
        assert config.require('supabase.table') == 'call_transcripts'

    def test_google_credentials_must_exist(self, temp_data_dir):
        config = CallScribeConfig.from_dict(
            {"google_cloud": {"credentials_path": str(Path(temp_data_dir) / "missing.json")}})
        with pytest.raises(ConfigError, match="credentials file not found"):
            config.get_google_credentials_path()

    def test_from_dict_does_not_mutate_defaults(self):
        CallScribeConfig.from_dict({"storage": {"backend": "supabase"}})
        assert CallScribeConfig.from_dict({}).get('storage.backend') == 'file'
