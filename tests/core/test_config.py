"""Tests for environment-driven settings."""

from pathlib import Path

import pytest

from polyci.core.config import Settings, get_settings
from polyci.exceptions import ConfigurationError


class TestDefaults:
    def test_defaults(self, settings):
        assert settings.ci is False
        assert settings.build_mode == "release"
        assert settings.is_release
        assert settings.source_remote == "origin"
        assert settings.mirror_remote == "gitlab"
        assert settings.log_format == "console"

    def test_root_defaults_to_cwd(self, settings, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert settings.root == tmp_path.resolve()


class TestEnvironment:
    def test_ci_variables(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CI", "true")
        monkeypatch.setenv("COVERAGE", "1")
        monkeypatch.setenv("PROJECT_ROOT", str(tmp_path))
        monkeypatch.setenv("GITHUB_REF", "refs/heads/main")
        settings = get_settings()

        assert settings.ci and settings.coverage
        assert settings.root == tmp_path.resolve()
        assert settings.github_ref == "refs/heads/main"

    def test_build_mode_is_normalised(self, monkeypatch):
        monkeypatch.setenv("BUILD_MODE", " Debug ")
        settings = get_settings()
        assert settings.build_mode == "debug"
        assert not settings.is_release

    def test_invalid_build_mode(self, monkeypatch):
        monkeypatch.setenv("BUILD_MODE", "fast")
        with pytest.raises(ConfigurationError, match="BUILD_MODE"):
            get_settings()

    def test_log_settings_use_prefixed_names(self, monkeypatch):
        monkeypatch.setenv("POLYCI_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("POLYCI_LOG_FORMAT", "JSON")
        settings = get_settings()
        assert settings.log_level == "WARNING"
        assert settings.log_format == "json"

    def test_exported_classification(self, monkeypatch):
        monkeypatch.setenv("DETECTED_LANGUAGES", "go,python")
        assert get_settings().detected_languages == "go,python"

    def test_platform_name_in_ci_reads_as_false(self, monkeypatch):
        monkeypatch.setenv("CI", "woodpecker")
        assert get_settings().ci is False

    @pytest.mark.parametrize("value", ["true", "TRUE", "1", "yes", "on"])
    def test_truthy_flag_values(self, monkeypatch, value):
        monkeypatch.setenv("DRY_RUN", value)
        assert get_settings().dry_run is True

    @pytest.mark.parametrize("value", ["false", "0", "no", "off", "sometimes"])
    def test_other_flag_values_are_false(self, monkeypatch, value):
        monkeypatch.setenv("COVERAGE", value)
        assert get_settings().coverage is False

    def test_invalid_log_level(self, monkeypatch):
        monkeypatch.setenv("POLYCI_LOG_LEVEL", "foo")
        with pytest.raises(ConfigurationError, match="POLYCI_LOG_LEVEL"):
            get_settings()

    def test_log_level_is_normalised(self, monkeypatch):
        monkeypatch.setenv("POLYCI_LOG_LEVEL", "success")
        assert get_settings().log_level == "SUCCESS"

    def test_project_dotenv_is_not_read(self, monkeypatch, tmp_path):
        (tmp_path / ".env").write_text("BUILD_MODE=production\nFIX=true\n")
        monkeypatch.chdir(tmp_path)
        settings = get_settings()
        assert settings.build_mode == "release"
        assert settings.fix is False


class TestOverrides:
    def test_flags_override_environment(self, monkeypatch):
        monkeypatch.setenv("MIRROR_REMOTE", "backup")
        settings = get_settings(mirror_remote="codeberg", build_mode="debug")
        assert settings.mirror_remote == "codeberg"
        assert settings.build_mode == "debug"

    def test_none_overrides_fall_through(self, monkeypatch):
        monkeypatch.setenv("FIX", "true")
        settings = get_settings(fix=None, project_root=None)
        assert settings.fix is True
        assert settings.project_root is None

    def test_project_root_accepts_path(self, tmp_path):
        settings = Settings(_env_file=None, project_root=tmp_path / "sub" / "..")
        assert settings.root == Path(tmp_path).resolve()
