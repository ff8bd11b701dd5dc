"""Tests for configuration loading."""

from __future__ import annotations

import pytest

from keysentry.config import (
    CheckConfig,
    ConfigNotFoundError,
    ConfigurationError,
    Settings,
    find_config,
    load_config,
    parse_plugin_list,
    resolve_config,
)


class TestCheckConfig:
    """Tests for CheckConfig."""

    def test_default_config(self):
        config = CheckConfig()

        assert config.offline is False
        assert config.enabled_plugins == []
        assert config.disabled_plugins == []
        assert config.verify is False
        assert config.range_url == "https://api.pwnedpasswords.com/range/"
        assert config.prefix_length == 5
        assert config.max_workers == 4
        assert config.batch_workers == 1

    def test_from_dict_empty(self):
        config = CheckConfig.from_dict({})
        assert config.offline is False
        assert config.max_workers == 4

    def test_from_dict_with_check_section(self):
        config = CheckConfig.from_dict(
            {
                "check": {
                    "offline": True,
                    "enabled_plugins": ["common-secrets"],
                    "disabled_plugins": "a, b",
                    "max_workers": 2,
                    "batch_workers": 3,
                    "request_timeout": 2.5,
                    "credentials": {"GITGUARDIAN_API_TOKEN": "tok"},
                }
            }
        )

        assert config.offline is True
        assert config.enabled_plugins == ["common-secrets"]
        assert config.disabled_plugins == ["a", "b"]
        assert config.max_workers == 2
        assert config.batch_workers == 3
        assert config.request_timeout == 2.5
        assert config.credential("GITGUARDIAN_API_TOKEN") == "tok"

    def test_from_dict_clamps_workers(self):
        config = CheckConfig.from_dict({"check": {"max_workers": 0}})
        assert config.max_workers == 1

    def test_from_dict_invalid_value(self):
        with pytest.raises(ConfigurationError):
            CheckConfig.from_dict({"check": {"prefix_length": "five"}})

    @pytest.mark.parametrize("length", [1, 5])
    def test_from_dict_accepts_short_prefix(self, length):
        config = CheckConfig.from_dict({"check": {"prefix_length": length}})
        assert config.prefix_length == length

    @pytest.mark.parametrize("length", [0, 6, 39, -1])
    def test_from_dict_rejects_long_prefix(self, length):
        """A prefix that narrows the candidate set to one hash is refused."""
        with pytest.raises(ConfigurationError, match="prefix_length must be between 1 and 5"):
            CheckConfig.from_dict({"check": {"prefix_length": length}})

    def test_from_dict_section_must_be_table(self):
        with pytest.raises(ConfigurationError):
            CheckConfig.from_dict({"check": "offline"})

    def test_credential_falls_back_to_environment(self, monkeypatch):
        monkeypatch.setenv("SOME_API_TOKEN", "from-env")
        config = CheckConfig()

        assert config.credential("SOME_API_TOKEN") == "from-env"
        assert config.credential("MISSING_TOKEN_FOR_TEST") is None

    def test_empty_credential_is_missing(self, monkeypatch):
        monkeypatch.delenv("EMPTY_TOKEN", raising=False)
        config = CheckConfig(credentials={"EMPTY_TOKEN": ""})
        assert config.credential("EMPTY_TOKEN") is None


class TestParsePluginList:
    def test_comma_separated(self):
        assert parse_plugin_list(" a, b ,,c ") == ["a", "b", "c"]

    def test_list_and_none(self):
        assert parse_plugin_list(["a", " b "]) == ["a", "b"]
        assert parse_plugin_list(None) == []


class TestSettings:
    """Tests for environment settings."""

    def test_environment_overrides(self, isolated_env, monkeypatch):
        monkeypatch.setenv("KEYSENTRY_OFFLINE", "true")
        monkeypatch.setenv("KEYSENTRY_DISABLED_PLUGINS", "common-secrets")
        monkeypatch.setenv("KEYSENTRY_MAX_WORKERS", "2")

        config = CheckConfig().merge_settings(Settings())

        assert config.offline is True
        assert config.disabled_plugins == ["common-secrets"]
        assert config.max_workers == 2

    def test_unset_values_leave_config_alone(self, isolated_env):
        config = CheckConfig(offline=True, max_workers=3).merge_settings(Settings())

        assert config.offline is True
        assert config.max_workers == 3

    def test_plugin_api_keys_become_credentials(self, isolated_env, monkeypatch):
        monkeypatch.setenv("KEYSENTRY_PLUGIN_API_KEYS", '{"DEHASHED_API_KEY": "k"}')

        config = CheckConfig().merge_settings(Settings())

        assert config.credentials["DEHASHED_API_KEY"] == "k"


class TestLoadConfig:
    """Tests for config file discovery and loading."""

    def test_explicit_missing_path(self, tmp_path):
        with pytest.raises(ConfigNotFoundError):
            load_config(tmp_path / "keysentry.toml")

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "keysentry.toml"
        path.write_text("[check\noffline = ")

        with pytest.raises(ConfigurationError, match="Invalid TOML"):
            load_config(path)

    def test_keysentry_toml(self, tmp_path):
        path = tmp_path / "keysentry.toml"
        path.write_text("[check]\noffline = true\n")

        assert load_config(path) == {"check": {"offline": True}}

    def test_pyproject_tool_section(self, tmp_path):
        path = tmp_path / "pyproject.toml"
        path.write_text('[project]\nname = "x"\n\n[tool.keysentry.check]\nmax_workers = 2\n')

        assert load_config(path) == {"check": {"max_workers": 2}}

    def test_find_config_searches_parents(self, tmp_path):
        (tmp_path / "keysentry.toml").write_text("[check]\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)

        assert find_config(nested) == tmp_path / "keysentry.toml"

    def test_find_config_ignores_unrelated_pyproject(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\n')
        assert find_config(tmp_path) != tmp_path / "pyproject.toml"

    def test_resolve_config(self, isolated_env, monkeypatch):
        path = isolated_env / "keysentry.toml"
        path.write_text("[check]\noffline = false\nmax_workers = 3\n")
        monkeypatch.setenv("KEYSENTRY_OFFLINE", "1")

        config = resolve_config(path)

        assert config.offline is True
        assert config.max_workers == 3
