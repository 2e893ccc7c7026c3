import logging

import pytest

from turir.config_loader import TurirConfig, load_config
from turir.errors import ConfigError


def write(tmp_path, text):
    path = tmp_path / "turir.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_full_configuration(tmp_path):
    path = write(
        tmp_path,
        """
turir:
  interpreter:
    max_steps: 500
    capture_steps: false
  compiler:
    tape_size: 128
    print_buffer_size: 512
  log_level: debug
""",
    )
    config = load_config(path)
    assert config == TurirConfig(
        max_steps=500,
        capture_steps=False,
        tape_size=128,
        print_buffer_size=512,
        log_level="DEBUG",
    )
    assert config.logging_level == logging.DEBUG


def test_configuration_without_root_node(tmp_path):
    config = load_config(write(tmp_path, "interpreter:\n  max_steps: 10\n"))
    assert config.max_steps == 10
    assert config.tape_size == 256


def test_empty_file_gives_defaults(tmp_path):
    assert load_config(write(tmp_path, "")) == TurirConfig()


@pytest.mark.parametrize(
    "text, message",
    [
        ("interpreter:\n  max_steps: 0\n", "max_steps"),
        ("interpreter:\n  max_steps: many\n", "max_steps"),
        ("interpreter:\n  capture_steps: maybe\n", "capture_steps"),
        ("compiler:\n  tape_size: 1024\n", "tape_size"),
        ("compiler: 3\n", "compiler"),
        ("log_level: LOUD\n", "log level"),
        ("colour: blue\n", "colour"),
        ("- a\n- b\n", "mapping"),
    ],
)
def test_invalid_configuration(tmp_path, text, message):
    with pytest.raises(ConfigError) as excinfo:
        load_config(write(tmp_path, text))
    assert message in str(excinfo.value)


def test_invalid_yaml(tmp_path):
    with pytest.raises(ConfigError):
        load_config(write(tmp_path, "interpreter: [unclosed\n"))


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "missing.yaml")


def test_merged_ignores_none():
    config = TurirConfig(max_steps=3).merged(max_steps=None, log_level="INFO")
    assert config.max_steps == 3
    assert config.log_level == "INFO"
