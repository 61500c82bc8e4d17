"""
Tests for configuration loading
"""

import dataclasses

import pytest
import yaml

from orchestrator.config import ConfigManager, SorterSettings, parse_bool
from orchestrator.errors import ConfigurationError


def make_manager(tmp_path, environ, config=None, credentials=None):
    config_path = tmp_path / "music-sort.yaml"
    credentials_path = tmp_path / "credentials.yaml"
    if config is not None:
        config_path.write_text(yaml.safe_dump(config), encoding="utf-8")
    if credentials is not None:
        credentials_path.write_text(yaml.safe_dump(credentials), encoding="utf-8")
    return ConfigManager(str(config_path), str(credentials_path), environ=environ)


class TestBuildSettingsFromEnvironment:
    """Settings built from environment variables only"""

    def test_required_values(self, tmp_path, library):
        """API_KEY and ROOT_FOLDER are enough to start"""
        manager = make_manager(tmp_path, {"API_KEY": "sk-1", "ROOT_FOLDER": str(library)})
        settings = manager.build_settings()

        assert settings.api_key == "sk-1"
        assert settings.root == library
        assert settings.inbox == library
        assert settings.inbox_is_root
        assert settings.allow_folder_creation is False
        assert settings.batch_size == 50
        assert settings.interval == 60.0
        assert settings.model == "gpt-4-turbo"

    def test_missing_api_key(self, tmp_path, library):
        """Startup fails without an API key"""
        manager = make_manager(tmp_path, {"ROOT_FOLDER": str(library)})
        with pytest.raises(ConfigurationError, match="API_KEY"):
            manager.build_settings()

    def test_blank_api_key(self, tmp_path, library):
        """A whitespace-only key counts as missing"""
        manager = make_manager(tmp_path, {"API_KEY": "   ", "ROOT_FOLDER": str(library)})
        with pytest.raises(ConfigurationError, match="API_KEY"):
            manager.build_settings()

    def test_openai_api_key_fallback(self, tmp_path, library):
        """OPENAI_API_KEY is accepted when API_KEY is absent"""
        manager = make_manager(tmp_path, {"OPENAI_API_KEY": "sk-2", "ROOT_FOLDER": str(library)})
        assert manager.build_settings().api_key == "sk-2"

    def test_missing_root(self, tmp_path):
        """Startup fails without a root folder"""
        manager = make_manager(tmp_path, {"API_KEY": "sk-1"})
        with pytest.raises(ConfigurationError, match="ROOT_FOLDER"):
            manager.build_settings()

    def test_root_not_a_directory(self, tmp_path):
        """Root must be an existing directory"""
        not_a_dir = tmp_path / "file.txt"
        not_a_dir.write_text("x")
        manager = make_manager(tmp_path, {"API_KEY": "sk-1", "ROOT_FOLDER": str(not_a_dir)})
        with pytest.raises(ConfigurationError, match="not a directory"):
            manager.build_settings()

    def test_allow_folder_creation_flag(self, tmp_path, library):
        """Boolean flags accept yes/no style values"""
        manager = make_manager(tmp_path, {
            "API_KEY": "sk-1",
            "ROOT_FOLDER": str(library),
            "ALLOW_FOLDER_CREATION": "yes"
        })
        assert manager.build_settings().allow_folder_creation is True

    def test_invalid_batch_size(self, tmp_path, library):
        """Batch size must be a positive number"""
        manager = make_manager(tmp_path, {
            "API_KEY": "sk-1",
            "ROOT_FOLDER": str(library),
            "BATCH_SIZE": "0"
        })
        with pytest.raises(ConfigurationError, match="batch_size"):
            manager.build_settings()


class TestBuildSettingsFromFiles:
    """Settings loaded from YAML config and credentials"""

    def test_yaml_values(self, tmp_path, library):
        """Values from the config file are used"""
        manager = make_manager(tmp_path, {}, config={
            "library": {"root": str(library), "inbox": "Inbox"},
            "sorting": {"batch_size": 10, "lenient_parsing": True, "file_pattern": "*.mp3"},
            "oracle": {"api_key": "sk-file", "model": "gpt-4o"}
        })
        (library / "Inbox").mkdir()

        settings = manager.build_settings()

        assert settings.api_key == "sk-file"
        assert settings.inbox == library / "Inbox"
        assert not settings.inbox_is_root
        assert settings.batch_size == 10
        assert settings.lenient_parsing is True
        assert settings.file_pattern == "*.mp3"
        assert settings.model == "gpt-4o"

    def test_environment_overrides_file(self, tmp_path, library):
        """Environment variables win over the config file"""
        manager = make_manager(
            tmp_path,
            {"API_KEY": "sk-env"},
            config={"library": {"root": str(library)}, "oracle": {"api_key": "sk-file"}}
        )
        assert manager.build_settings().api_key == "sk-env"

    def test_env_var_expansion(self, tmp_path, library):
        """${VAR} values in the file are read from the environment"""
        manager = make_manager(
            tmp_path,
            {"MY_MUSIC": str(library), "API_KEY": "sk-1"},
            config={"library": {"root": "${MY_MUSIC}"}}
        )
        assert manager.build_settings().root == library

    def test_credentials_file(self, tmp_path, library):
        """The key may come from credentials.yaml"""
        manager = make_manager(
            tmp_path,
            {"ROOT_FOLDER": str(library)},
            credentials={"openai": {"api_key": "sk-cred"}}
        )
        assert manager.build_settings().api_key == "sk-cred"

    def test_missing_inbox(self, tmp_path, library):
        """A configured inbox must exist"""
        manager = make_manager(tmp_path, {
            "API_KEY": "sk-1",
            "ROOT_FOLDER": str(library),
            "INBOX_FOLDER": "Nope"
        })
        with pytest.raises(ConfigurationError, match="Inbox"):
            manager.build_settings()

    def test_invalid_yaml(self, tmp_path):
        """A broken config file is a configuration error"""
        (tmp_path / "music-sort.yaml").write_text("library: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            ConfigManager(str(tmp_path / "music-sort.yaml"), str(tmp_path / "none.yaml"), environ={})

    def test_dot_notation_default(self, tmp_path):
        """Unknown keys return the default"""
        manager = make_manager(tmp_path, {})
        assert manager.get("sorting.nothing_here", "fallback") == "fallback"


class TestSorterSettings:
    """Test cases for the frozen settings value"""

    def test_frozen(self, settings):
        """Settings cannot be changed after startup"""
        with pytest.raises(dataclasses.FrozenInstanceError):
            settings.batch_size = 5

    def test_repr_hides_key(self, settings):
        """The API key never appears in repr"""
        assert "test-key" not in repr(settings)


class TestParseBool:
    """Test cases for boolean parsing"""

    @pytest.mark.parametrize("value", [True, "true", "YES", "1", "on"])
    def test_true_values(self, value):
        assert parse_bool(value, "flag") is True

    @pytest.mark.parametrize("value", [False, "false", "No", "0", "off", ""])
    def test_false_values(self, value):
        assert parse_bool(value, "flag") is False

    def test_invalid_value(self):
        with pytest.raises(ConfigurationError):
            parse_bool("maybe", "flag")
