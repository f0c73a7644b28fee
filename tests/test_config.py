"""Tests for the configuration module."""

from __future__ import annotations

from pathlib import Path

import pytest

from modules_hunter.config import (
    DEFAULT_CONFIG_TEMPLATE,
    VALID_SORT_KEYS,
    AnalyzeConfig,
    CacheConfig,
    CleanConfig,
    Config,
    ScanConfig,
    _dict_to_config,
    _merge_dicts,
    _validate_config,
    get_config_paths,
    get_xdg_config_home,
    load_config,
    load_config_from_file,
)
from modules_hunter.core.parallel import DEFAULT_WORKERS


class TestScanConfig:
    """Tests for ScanConfig dataclass."""

    def test_default_values(self):
        config = ScanConfig()
        assert config.max_depth == 10
        assert config.exclude == []
        assert config.include_hidden is False
        assert config.parallel is True
        assert config.follow_symlinks is False
        assert config.workers == DEFAULT_WORKERS
        assert config.sort == "size"

    def test_to_options(self):
        config = ScanConfig(max_depth=3, exclude=["archive/**"], include_hidden=True)
        options = config.to_options(show_progress=True)
        assert options.max_depth == 3
        assert options.exclude_paths == ("archive/**",)
        assert options.include_hidden is True
        assert options.show_progress is True

    def test_to_parallel_config(self):
        parallel = ScanConfig(parallel=False, workers=4).to_parallel_config()
        assert parallel.enabled is False
        assert parallel.max_workers == 4


class TestCacheConfig:
    """Tests for CacheConfig dataclass."""

    def test_default_values(self):
        assert CacheConfig().timeout == 60.0


class TestAnalyzeConfig:
    """Tests for AnalyzeConfig dataclass."""

    def test_default_values(self):
        config = AnalyzeConfig()
        assert config.size_threshold == "0B"
        assert config.age_threshold == 0
        assert config.duplicates is True

    def test_size_threshold_bytes_property(self):
        config = AnalyzeConfig(size_threshold="10MB")
        assert config.size_threshold_bytes == 10 * 1024 * 1024

    def test_size_threshold_bytes_zero_default(self):
        assert AnalyzeConfig().size_threshold_bytes == 0


class TestCleanConfig:
    """Tests for CleanConfig dataclass."""

    def test_default_values(self):
        config = CleanConfig()
        assert config.dry_run is True
        assert config.trash is True
        assert config.backup is False
        assert config.interactive is True


class TestConfig:
    """Tests for Config root dataclass."""

    def test_default_values(self):
        config = Config()
        assert isinstance(config.scan, ScanConfig)
        assert isinstance(config.cache, CacheConfig)
        assert isinstance(config.analyze, AnalyzeConfig)
        assert isinstance(config.clean, CleanConfig)
        assert config._source is None


class TestMergeDicts:
    """Tests for _merge_dicts function."""

    def test_simple_merge(self):
        result = _merge_dicts({"a": 1, "b": 2}, {"b": 3, "c": 4})
        assert result == {"a": 1, "b": 3, "c": 4}

    def test_deep_merge(self):
        result = _merge_dicts({"section": {"a": 1, "b": 2}}, {"section": {"b": 3}})
        assert result == {"section": {"a": 1, "b": 3}}

    def test_base_unchanged(self):
        base = {"a": 1}
        _merge_dicts(base, {"a": 2})
        assert base == {"a": 1}  # Original unchanged


class TestValidateConfig:
    """Tests for _validate_config function."""

    def test_valid_config(self):
        data = {
            "scan": {"max_depth": 5, "exclude": ["dist/**"], "sort": "age"},
            "cache": {"timeout": 30},
            "analyze": {"size_threshold": "100MB", "age_threshold": 30},
        }
        assert _validate_config(data) == []

    def test_negative_depth(self):
        errors = _validate_config({"scan": {"max_depth": -1}})
        assert len(errors) == 1
        assert "scan.max_depth" in errors[0]

    def test_non_integer_depth(self):
        assert _validate_config({"scan": {"max_depth": 2.5}})
        assert _validate_config({"scan": {"max_depth": True}})

    def test_invalid_exclude(self):
        errors = _validate_config({"scan": {"exclude": "dist/**"}})
        assert "scan.exclude" in errors[0]
        assert _validate_config({"scan": {"exclude": [""]}})

    def test_invalid_sort(self):
        errors = _validate_config({"scan": {"sort": "color"}})
        assert "scan.sort" in errors[0]

    def test_sort_keys(self):
        for key in VALID_SORT_KEYS:
            assert _validate_config({"scan": {"sort": key}}) == []

    def test_negative_timeout(self):
        errors = _validate_config({"cache": {"timeout": -5}})
        assert "cache.timeout" in errors[0]

    def test_float_timeout_allowed(self):
        assert _validate_config({"cache": {"timeout": 0.5}}) == []

    def test_invalid_size_threshold(self):
        errors = _validate_config({"analyze": {"size_threshold": "invalid"}})
        assert len(errors) == 1
        assert "analyze.size_threshold" in errors[0]

    def test_invalid_age_threshold(self):
        errors = _validate_config({"analyze": {"age_threshold": -1}})
        assert "analyze.age_threshold" in errors[0]


class TestDictToConfig:
    """Tests for _dict_to_config function."""

    def test_empty_dict(self):
        config = _dict_to_config({})
        assert config.clean.dry_run is True  # Default
        assert config._source is None

    def test_partial_config(self):
        config = _dict_to_config({"clean": {"dry_run": False}})
        assert config.clean.dry_run is False
        assert config.clean.trash is True  # Default

    def test_unknown_keys_ignored(self):
        config = _dict_to_config({"scan": {"max_depth": 4, "colour": "red"}})
        assert config.scan.max_depth == 4

    def test_with_source(self):
        path = Path("/test/config.toml")
        config = _dict_to_config({}, source=path)
        assert config._source == path


class TestGetConfigPaths:
    """Tests for get_config_paths function."""

    def test_returns_tuple(self):
        xdg, cwd = get_config_paths()
        assert isinstance(xdg, Path)
        assert isinstance(cwd, Path)

    def test_xdg_path_format(self):
        xdg, _ = get_config_paths()
        assert xdg.name == "config.toml"
        assert xdg.parent.name == "modules-hunter"

    def test_cwd_path_format(self):
        _, cwd = get_config_paths()
        assert cwd.name == "modules-hunter.toml"


class TestGetXdgConfigHome:
    """Tests for get_xdg_config_home function."""

    def test_default_path(self, monkeypatch):
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        assert get_xdg_config_home() == Path.home() / ".config"

    def test_custom_xdg(self, monkeypatch):
        monkeypatch.setenv("XDG_CONFIG_HOME", "/custom/config")
        assert get_xdg_config_home() == Path("/custom/config")


class TestLoadConfig:
    """Tests for load_config function."""

    @pytest.fixture
    def isolated(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        return tmp_path

    def test_no_config_files(self, isolated: Path):
        config = load_config()
        assert config._source is None
        assert config.scan.max_depth == 10  # Default

    def test_cwd_overrides_xdg(self, isolated: Path):
        xdg_file = isolated / "xdg" / "modules-hunter" / "config.toml"
        xdg_file.parent.mkdir(parents=True)
        xdg_file.write_text("[scan]\nmax_depth = 3\ninclude_hidden = true\n")
        cwd_file = isolated / "modules-hunter.toml"
        cwd_file.write_text("[scan]\nmax_depth = 7\n")

        config = load_config()
        assert config.scan.max_depth == 7
        assert config.scan.include_hidden is True
        assert config._source == cwd_file

    def test_invalid_toml(self, isolated: Path):
        (isolated / "modules-hunter.toml").write_text("[scan\n")
        with pytest.raises(ValueError, match="Invalid TOML"):
            load_config()

    def test_invalid_values(self, isolated: Path):
        (isolated / "modules-hunter.toml").write_text("[cache]\ntimeout = -1\n")
        with pytest.raises(ValueError, match="cache.timeout"):
            load_config()


class TestLoadConfigFromFile:
    """Tests for load_config_from_file function."""

    def test_load_valid_file(self, tmp_path):
        config_file = tmp_path / "test.toml"
        config_file.write_text("""
[clean]
dry_run = false
trash = false
""")
        config = load_config_from_file(config_file)
        assert config.clean.dry_run is False
        assert config.clean.trash is False
        assert config._source == config_file

    def test_load_partial_file(self, tmp_path):
        config_file = tmp_path / "test.toml"
        config_file.write_text("""
[scan]
exclude = ["archive/**"]
""")
        config = load_config_from_file(config_file)
        assert config.scan.exclude == ["archive/**"]
        assert config.scan.max_depth == 10  # Default

    def test_load_invalid_sort(self, tmp_path):
        config_file = tmp_path / "test.toml"
        config_file.write_text("""
[scan]
sort = "invalid"
""")
        with pytest.raises(ValueError, match="scan.sort"):
            load_config_from_file(config_file)


class TestDefaultConfigTemplate:
    """Tests for DEFAULT_CONFIG_TEMPLATE."""

    def test_template_is_valid_toml(self, tmp_path):
        config_file = tmp_path / "test.toml"
        config_file.write_text(DEFAULT_CONFIG_TEMPLATE)
        config = load_config_from_file(config_file)
        assert config.clean.dry_run is True
        assert config.cache.timeout == 60

    def test_template_has_all_sections(self):
        for section in ("[scan]", "[cache]", "[analyze]", "[clean]"):
            assert section in DEFAULT_CONFIG_TEMPLATE

    def test_template_has_comments(self):
        assert "#" in DEFAULT_CONFIG_TEMPLATE
