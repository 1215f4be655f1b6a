from __future__ import annotations

import pytest
from pydantic import ValidationError

from gpuenv.configuration import loader as loader_module
from gpuenv.configuration.defaults import DEFAULT_CONFIG_DICT, DEFAULT_CUDNN_SEARCH_PATHS
from gpuenv.configuration.errors import ConfigurationError
from gpuenv.configuration.schema import CheckOptions, GpuenvConfig, ProbeConfig


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_locate_returns_none_without_files():
    assert loader_module.locate_config_file() is None


def test_locate_prefers_env_over_xdg(tmp_path, monkeypatch):
    env_config = _write(tmp_path / "custom.toml", "")
    _write(tmp_path / "xdg" / "gpuenv" / "config.toml", "")
    monkeypatch.setenv("GPUENV_CONFIG", str(env_config))
    loader_module.locate_config_file.cache_clear()

    assert loader_module.locate_config_file() == env_config.resolve()


def test_locate_prefers_xdg_over_home(tmp_path):
    xdg_config = _write(tmp_path / "xdg" / "gpuenv" / "config.toml", "")
    _write(tmp_path / "home" / ".config" / "gpuenv" / "config.toml", "")
    loader_module.locate_config_file.cache_clear()

    assert loader_module.locate_config_file() == xdg_config.resolve()


def test_locate_falls_back_to_home(tmp_path):
    home_config = _write(tmp_path / "home" / ".config" / "gpuenv" / "config.toml", "")
    loader_module.locate_config_file.cache_clear()

    assert loader_module.locate_config_file() == home_config.resolve()


def test_missing_env_override_is_an_error(tmp_path, monkeypatch):
    monkeypatch.setenv("GPUENV_CONFIG", str(tmp_path / "missing.toml"))
    loader_module.locate_config_file.cache_clear()

    with pytest.raises(ConfigurationError, match="missing file"):
        loader_module.locate_config_file()


def test_user_values_merge_over_defaults(tmp_path):
    _write(
        tmp_path / "xdg" / "gpuenv" / "config.toml",
        '[probe]\ncommand_timeout = 3\n\n[cuda]\nextra_search_paths = ["/srv/cudnn/include"]\n',
    )
    config = loader_module.reload_config()

    assert config.probe.command_timeout == 3.0
    assert config.probe.python_timeout == 15.0
    assert config.python.enabled is True
    assert config.cuda.extra_search_paths == ["/srv/cudnn/include"]
    assert loader_module.get_config() is config


def test_invalid_toml_is_reported(tmp_path):
    _write(tmp_path / "xdg" / "gpuenv" / "config.toml", "[probe\ncommand_timeout = 3\n")

    with pytest.raises(ConfigurationError, match="Invalid TOML"):
        loader_module.reload_config()


def test_out_of_range_value_is_reported(tmp_path):
    _write(tmp_path / "xdg" / "gpuenv" / "config.toml", "[probe]\ncommand_timeout = 0\n")

    with pytest.raises(ConfigurationError, match="Invalid configuration"):
        loader_module.reload_config()


def test_merge_configs_is_deep_and_non_mutating():
    override = {"probe": {"python_timeout": 30}, "extra": {"ignored": True}}
    merged = loader_module.merge_configs(DEFAULT_CONFIG_DICT, override)

    assert merged["probe"] == {"command_timeout": 10.0, "python_timeout": 30}
    assert merged["extra"] == {"ignored": True}
    assert set(DEFAULT_CONFIG_DICT) == {"probe", "python", "cuda"}
    assert DEFAULT_CONFIG_DICT["probe"]["python_timeout"] == 15.0


def test_unknown_sections_are_ignored():
    config = GpuenvConfig.from_dict({"meta": {"version": "1.0"}, "telemetry": {"enabled": True}})
    assert "telemetry" not in config.model_dump()
    assert set(config.model_dump()) == {"probe", "python", "cuda"}


def test_probe_timeout_bounds():
    ProbeConfig(command_timeout=0.5, python_timeout=600)
    with pytest.raises(ValidationError):
        ProbeConfig(command_timeout=121)
    with pytest.raises(ValidationError):
        ProbeConfig(python_timeout=0.5)


def test_blank_interpreter_means_auto():
    config = GpuenvConfig.from_dict({"python": {"interpreter": "  "}})
    assert config.python.interpreter is None


class TestCheckOptions:
    """Tests for combining the configuration file with command-line flags."""

    def test_from_config_defaults(self):
        options = CheckOptions.from_config(GpuenvConfig())
        assert options.mode == "all"
        assert options.python is True
        assert options.command_timeout == 10.0
        assert options.cudnn_search_paths == DEFAULT_CUDNN_SEARCH_PATHS

    def test_flags_override_file_values(self):
        config = GpuenvConfig.from_dict(
            {"python": {"enabled": True, "interpreter": "/opt/conda/bin/python"}}
        )
        options = CheckOptions.from_config(
            config, mode="gpu", python=False, python_executable="/usr/bin/python3"
        )
        assert options.python is False
        assert options.python_executable == "/usr/bin/python3"
        assert options.include_gpu and not options.include_system

    def test_unset_flags_keep_file_values(self):
        config = GpuenvConfig.from_dict({"python": {"enabled": False, "interpreter": "python3.11"}})
        options = CheckOptions.from_config(config, python=None, python_executable=None)
        assert options.python is False
        assert options.python_executable == "python3.11"

    def test_extra_search_paths_come_first(self):
        config = GpuenvConfig.from_dict({"cuda": {"extra_search_paths": ["/srv/include"]}})
        options = CheckOptions.from_config(config)
        assert options.cudnn_search_paths[0] == "/srv/include"
        assert options.cudnn_search_paths[1:] == DEFAULT_CUDNN_SEARCH_PATHS

    def test_options_are_frozen(self):
        options = CheckOptions()
        with pytest.raises(ValidationError):
            options.verbose = True

    @pytest.mark.parametrize(
        "mode, gpu, system",
        [("all", True, True), ("gpu", True, False), ("sys", False, True)],
    )
    def test_mode_sections(self, mode, gpu, system):
        options = CheckOptions(mode=mode)
        assert (options.include_gpu, options.include_system) == (gpu, system)
