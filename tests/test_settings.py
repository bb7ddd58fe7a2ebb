"""Tests for settings.py module."""

import pytest

from deploy_progress import settings


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Resolve settings from an empty directory without CI or overrides."""
    for name in (
        "CI",
        "DEPLOY_PROGRESS_RENDER_INTERVAL",
        "DEPLOY_PROGRESS_CI_RENDER_INTERVAL",
        "DEPLOY_PROGRESS_MAX_FAILURE_EVENTS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    settings._load_pyproject_settings.cache_clear()
    yield tmp_path
    settings._load_pyproject_settings.cache_clear()


def _write_pyproject(path, body: str) -> None:
    (path / "pyproject.toml").write_text(body)
    settings._load_pyproject_settings.cache_clear()


class TestLoadSettings:
    def test_reads_tool_section(self, isolated_settings):
        _write_pyproject(
            isolated_settings,
            '[project]\nname = "x"\n\n[tool.deploy-progress.render]\ninterval = 0.25\n',
        )
        assert settings._get_section("render") == {"interval": 0.25}

    def test_walks_up_to_parent_directory(self, isolated_settings, monkeypatch):
        _write_pyproject(isolated_settings, "[tool.deploy-progress.render]\ninterval = 2\n")
        nested = isolated_settings / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        settings._load_pyproject_settings.cache_clear()

        assert settings.get_render_interval() == 2.0

    def test_invalid_toml_is_ignored(self, isolated_settings):
        _write_pyproject(isolated_settings, "[tool.deploy-progress\n")
        assert settings._load_pyproject_settings() == {}


class TestRenderInterval:
    def test_platform_default(self, monkeypatch):
        monkeypatch.setattr(settings.sys, "platform", "linux")
        assert settings.get_render_interval() == 0.1

    def test_windows_default(self, monkeypatch):
        monkeypatch.setattr(settings.sys, "platform", "win32")
        assert settings.get_render_interval() == 0.5

    def test_ci_interval(self, monkeypatch):
        monkeypatch.setenv("CI", "true")
        assert settings.get_render_interval() == 30.0

    def test_ci_interval_from_pyproject(self, monkeypatch, isolated_settings):
        _write_pyproject(isolated_settings, "[tool.deploy-progress.render]\nci-interval = 5\n")
        monkeypatch.setenv("CI", "1")
        assert settings.get_render_interval() == 5.0

    def test_ci_disabled_by_false(self, monkeypatch):
        monkeypatch.setenv("CI", "false")
        assert not settings.is_ci()

    def test_env_override_wins_over_ci(self, monkeypatch):
        monkeypatch.setenv("CI", "true")
        monkeypatch.setenv("DEPLOY_PROGRESS_RENDER_INTERVAL", "0.2")
        assert settings.get_render_interval() == 0.2

    @pytest.mark.parametrize("value", ["0", "-1", "fast"])
    def test_invalid_env_value(self, monkeypatch, value):
        monkeypatch.setenv("DEPLOY_PROGRESS_RENDER_INTERVAL", value)
        with pytest.raises(ValueError, match="DEPLOY_PROGRESS_RENDER_INTERVAL"):
            settings.get_render_interval()


class TestMaxFailureEvents:
    def test_default(self):
        assert settings.get_max_failure_events() == 5

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("DEPLOY_PROGRESS_MAX_FAILURE_EVENTS", "2")
        assert settings.get_max_failure_events() == 2

    def test_pyproject(self, isolated_settings):
        _write_pyproject(
            isolated_settings, "[tool.deploy-progress.render]\nmax-failure-events = 9\n"
        )
        assert settings.get_max_failure_events() == 9

    def test_must_be_positive(self, monkeypatch):
        monkeypatch.setenv("DEPLOY_PROGRESS_MAX_FAILURE_EVENTS", "0")
        with pytest.raises(ValueError, match="must be positive"):
            settings.get_max_failure_events()
