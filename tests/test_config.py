"""
Tests for afvikle/config.py configuration management.
"""
import toml

from afvikle.config import Config, get_afvikle_dir, get_config_path, load_config, save_config


class TestConfigDefaults:
    """Test default configuration values."""

    def test_defaults(self):
        config = Config()
        assert config.lock_timeout == 1.0
        assert config.default_description == "No description provided"
        assert config.name_width == 15
        assert config.db_path is None

    def test_missing_file_gives_defaults(self):
        assert not get_config_path().exists()
        assert load_config() == Config()


class TestConfigFile:
    """Test loading and saving ~/.afvikle/config.toml."""

    def test_dir_is_in_home(self, fake_home):
        assert get_afvikle_dir() == fake_home / ".afvikle"
        assert get_afvikle_dir().is_dir()

    def test_load_partial_file(self):
        get_config_path().write_text('name_width = 30\n')
        config = load_config()
        assert config.name_width == 30
        assert config.lock_timeout == 1.0

    def test_save_and_load(self, tmp_path):
        save_config(Config(lock_timeout=2.5, default_description="todo", db_path=str(tmp_path / "x.db")))
        config = load_config()
        assert config.lock_timeout == 2.5
        assert config.default_description == "todo"
        assert config.db_path == str(tmp_path / "x.db")

    def test_unset_db_path_not_written(self):
        save_config(Config())
        data = toml.load(get_config_path())
        assert "db_path" not in data


class TestMalformedConfig:
    """Hand-edited bad values fall back to the defaults."""

    def test_bad_numbers(self, caplog):
        get_config_path().write_text('lock_timeout = "soon"\nname_width = "wide"\n')
        config = load_config()
        assert config.lock_timeout == 1.0
        assert config.name_width == 15
        assert "lock_timeout" in caplog.text
        assert "name_width" in caplog.text

    def test_non_positive_numbers(self):
        get_config_path().write_text('lock_timeout = -1\nname_width = 0\n')
        config = load_config()
        assert config.lock_timeout == 1.0
        assert config.name_width == 15

    def test_good_values_kept_beside_bad(self):
        get_config_path().write_text('lock_timeout = "x"\nname_width = 20\n')
        config = load_config()
        assert config.lock_timeout == 1.0
        assert config.name_width == 20

    def test_unparseable_file(self):
        get_config_path().write_text('name_width = = 3\n')
        assert load_config() == Config()
