"""Unit tests for configuration file discovery and loading."""

import json
from unittest.mock import patch

import pytest

from pagestruct.config import (
    discover_config_file,
    find_config_in_parents,
    load_config_file,
    load_config_with_priority,
    load_options,
    options_from_config,
)
from pagestruct.constants import CONFIG_ENV_VAR
from pagestruct.exceptions import ConfigurationError, PageStructError
from pagestruct.options import LayoutOptions


@pytest.fixture
def empty_home(tmp_path):
    home = tmp_path / "home"
    home.mkdir()
    with patch("pathlib.Path.home", return_value=home):
        yield home


@pytest.mark.unit
class TestLoadConfigFile:
    """Test loading each supported format."""

    def test_toml(self, tmp_path):
        """Test a dedicated TOML config file."""
        path = tmp_path / ".pagestruct.toml"
        path.write_text("min_lines_per_column = 4\ndetect_columns = false\n", encoding="utf-8")
        assert load_config_file(path) == {"min_lines_per_column": 4, "detect_columns": False}

    def test_yaml(self, tmp_path):
        """Test a YAML config file."""
        path = tmp_path / ".pagestruct.yaml"
        path.write_text("min_lines_per_column: 5\nbucket_width_ratio: 0.75\n", encoding="utf-8")
        assert load_config_file(str(path)) == {"min_lines_per_column": 5, "bucket_width_ratio": 0.75}

    def test_empty_yaml(self, tmp_path):
        """Test that an empty YAML file is an empty config."""
        path = tmp_path / ".pagestruct.yml"
        path.write_text("", encoding="utf-8")
        assert load_config_file(path) == {}

    def test_yaml_must_be_mapping(self, tmp_path):
        """Test that a YAML list is rejected."""
        path = tmp_path / ".pagestruct.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config_file(path)

    def test_json(self, tmp_path):
        """Test a JSON config file."""
        path = tmp_path / ".pagestruct.json"
        path.write_text(json.dumps({"metrics_sample_pages": 3}), encoding="utf-8")
        assert load_config_file(path) == {"metrics_sample_pages": 3}

    def test_invalid_json(self, tmp_path):
        """Test that a parse error is wrapped with its cause."""
        path = tmp_path / ".pagestruct.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigurationError) as exc_info:
            load_config_file(path)
        assert isinstance(exc_info.value.original_error, json.JSONDecodeError)
        assert exc_info.value.config_path == str(path)

    def test_invalid_toml(self, tmp_path):
        """Test that invalid TOML raises a configuration error."""
        path = tmp_path / ".pagestruct.toml"
        path.write_text("min_lines_per_column = = 4\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid TOML"):
            load_config_file(path)

    def test_pyproject_section(self, tmp_path):
        """Test that pyproject.toml yields its tool table."""
        path = tmp_path / "pyproject.toml"
        path.write_text('[project]\nname = "x"\n\n[tool.pagestruct]\nmin_lines_per_column = 6\n', encoding="utf-8")
        assert load_config_file(path) == {"min_lines_per_column": 6}

    def test_pyproject_without_section(self, tmp_path):
        """Test that pyproject.toml without the tool table is an empty config."""
        path = tmp_path / "pyproject.toml"
        path.write_text('[project]\nname = "x"\n', encoding="utf-8")
        assert load_config_file(path) == {}

    def test_missing_and_unsupported(self, tmp_path):
        """Test missing files, directories and unknown extensions."""
        with pytest.raises(ConfigurationError, match="does not exist"):
            load_config_file(tmp_path / "missing.toml")
        with pytest.raises(ConfigurationError, match="not a file"):
            load_config_file(tmp_path)
        path = tmp_path / "config.ini"
        path.write_text("[x]\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Unsupported"):
            load_config_file(path)

    def test_error_hierarchy(self, tmp_path):
        """Test that configuration errors are library errors."""
        with pytest.raises(PageStructError):
            load_config_file(tmp_path / "missing.yaml")


@pytest.mark.unit
class TestDiscovery:
    """Test searching for config files."""

    def test_found_in_parent(self, tmp_path):
        """Test that a config file in a parent directory is found."""
        config = tmp_path / ".pagestruct.toml"
        config.write_text("", encoding="utf-8")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config_in_parents(nested) == config.resolve()

    def test_dedicated_file_before_pyproject(self, tmp_path):
        """Test that a dedicated file wins over pyproject.toml in the same directory."""
        (tmp_path / "pyproject.toml").write_text("[tool.pagestruct]\ndetect_columns = false\n", encoding="utf-8")
        (tmp_path / ".pagestruct.json").write_text("{}", encoding="utf-8")
        assert find_config_in_parents(tmp_path).name == ".pagestruct.json"

    def test_pyproject_without_section_is_skipped(self, tmp_path):
        """Test that pyproject.toml files without a tool table are passed over."""
        (tmp_path / "pyproject.toml").write_text("[tool.pagestruct]\nmin_lines_per_column = 4\n", encoding="utf-8")
        nested = tmp_path / "pkg"
        nested.mkdir()
        (nested / "pyproject.toml").write_text('[project]\nname = "pkg"\n', encoding="utf-8")
        (nested / "broken").mkdir()
        (nested / "broken" / "pyproject.toml").write_text("not = = toml", encoding="utf-8")
        assert find_config_in_parents(nested / "broken") == (tmp_path / "pyproject.toml").resolve()

    def test_uses_cwd_by_default(self, tmp_path):
        """Test that the search starts in the working directory."""
        config = tmp_path / ".pagestruct.yaml"
        config.write_text("", encoding="utf-8")
        with patch("pathlib.Path.cwd", return_value=tmp_path):
            assert find_config_in_parents() == config.resolve()

    def test_home_fallback(self, tmp_path, empty_home):
        """Test that the home directory is searched last."""
        project = tmp_path / "project"
        project.mkdir()
        config = empty_home / ".pagestruct.toml"
        config.write_text("", encoding="utf-8")
        assert discover_config_file(project) == config

    def test_nothing_found(self, tmp_path, empty_home):
        """Test that discovery returns None without any config."""
        project = tmp_path / "project"
        project.mkdir()
        assert discover_config_file(project) is None


@pytest.mark.unit
class TestPriority:
    """Test explicit, environment and discovered config precedence."""

    def test_explicit_wins(self, tmp_path, monkeypatch):
        """Test that an explicit path beats the environment variable."""
        explicit = tmp_path / "explicit.toml"
        explicit.write_text("min_lines_per_column = 7\n", encoding="utf-8")
        env = tmp_path / "env.toml"
        env.write_text("min_lines_per_column = 8\n", encoding="utf-8")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(env))
        assert load_config_with_priority(explicit) == {"min_lines_per_column": 7}
        assert load_config_with_priority() == {"min_lines_per_column": 8}

    def test_env_var_argument(self, tmp_path):
        """Test that an environment path can be passed directly."""
        env = tmp_path / "env.yaml"
        env.write_text("detect_columns: false\n", encoding="utf-8")
        assert load_config_with_priority(env_var_path=str(env)) == {"detect_columns": False}

    def test_discovered(self, tmp_path, monkeypatch, empty_home):
        """Test that a discovered file is used when nothing is specified."""
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        project = tmp_path / "project"
        project.mkdir()
        (project / ".pagestruct.toml").write_text("metrics_sample_pages = 4\n", encoding="utf-8")
        monkeypatch.chdir(project)
        assert load_config_with_priority() == {"metrics_sample_pages": 4}

    def test_no_config(self, tmp_path, monkeypatch, empty_home):
        """Test that no config at all gives an empty mapping and default options."""
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        project = tmp_path / "project"
        project.mkdir()
        monkeypatch.chdir(project)
        assert load_config_with_priority() == {}
        assert load_options() == LayoutOptions()


@pytest.mark.unit
class TestOptionsFromConfig:
    """Test turning a config mapping into options."""

    def test_values_applied(self):
        """Test that config values override the defaults."""
        options = options_from_config({"min_lines_per_column": 4, "detect_columns": False})
        assert options.min_lines_per_column == 4
        assert options.detect_columns is False

    def test_base_options(self):
        """Test that unspecified values come from the base options."""
        base = LayoutOptions(metrics_sample_pages=5)
        assert options_from_config({"min_lines_per_column": 4}, base).metrics_sample_pages == 5

    def test_unknown_keys(self):
        """Test that unknown keys are rejected and listed."""
        with pytest.raises(ConfigurationError, match="min_lines_per_colum\\b"):
            options_from_config({"min_lines_per_colum": 4})

    def test_invalid_value(self):
        """Test that out-of-range values are wrapped."""
        with pytest.raises(ConfigurationError) as exc_info:
            options_from_config({"min_lines_per_column": 0}, config_path="cfg.toml")
        assert isinstance(exc_info.value.original_error, ValueError)
        assert exc_info.value.config_path == "cfg.toml"

    def test_load_options_from_file(self, tmp_path):
        """Test loading options straight from a file."""
        path = tmp_path / ".pagestruct.toml"
        path.write_text("column_overlap_ratio = 0.6\n", encoding="utf-8")
        assert load_options(path).column_overlap_ratio == 0.6
