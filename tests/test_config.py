"""Unit tests for properties-file configuration loading."""

import logging
from pathlib import Path

import pytest

from config import PORT, ROOT_DIRECTORY, ConfigError, ServerConfig, load_config


def test_load_config_reads_port_and_root_directory(tmp_path: Path) -> None:
    config_file = tmp_path / "config.properties"
    config_file.write_text("# comment\nport=9090\nrootDirectory=/srv/www\n", encoding="utf-8")

    config = load_config(config_file)

    assert config.port == 9090
    assert config.root_directory == "/srv/www"


def test_load_config_accepts_colon_separator_and_bang_comments(tmp_path: Path) -> None:
    config_file = tmp_path / "config.properties"
    config_file.write_text("! legacy comment\nport: 7070\n", encoding="utf-8")

    config = load_config(config_file)

    assert config.port == 7070
    assert config.root_directory == ROOT_DIRECTORY


def test_each_key_defaults_independently(tmp_path: Path) -> None:
    config_file = tmp_path / "config.properties"
    config_file.write_text("rootDirectory=public\n", encoding="utf-8")

    config = load_config(config_file)

    assert config.port == PORT
    assert config.root_directory == "public"


def test_missing_file_falls_back_to_defaults(tmp_path: Path, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="config"):
        config = load_config(tmp_path / "absent.properties")

    assert config == ServerConfig()
    assert "Using default values" in caplog.text


def test_malformed_file_falls_back_to_defaults(tmp_path: Path, caplog) -> None:
    config_file = tmp_path / "config.properties"
    config_file.write_text("port=9090\nthis line has no separator\n", encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="config"):
        config = load_config(config_file)

    assert config == ServerConfig()
    assert "Malformed configuration file" in caplog.text


def test_invalid_port_is_fatal(tmp_path: Path) -> None:
    config_file = tmp_path / "config.properties"
    config_file.write_text("port=eighty\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(config_file)


def test_out_of_range_port_is_fatal(tmp_path: Path) -> None:
    config_file = tmp_path / "config.properties"
    config_file.write_text("port=70000\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(config_file)


def test_unknown_keys_are_ignored(tmp_path: Path) -> None:
    config_file = tmp_path / "config.properties"
    config_file.write_text("serverAdress=example\nport=8181\n", encoding="utf-8")

    assert load_config(config_file).port == 8181


def test_last_duplicate_key_wins(tmp_path: Path) -> None:
    config_file = tmp_path / "config.properties"
    config_file.write_text("port=1111\nport=2222\n", encoding="utf-8")

    assert load_config(config_file).port == 2222


def test_backslash_escapes_are_unescaped(tmp_path: Path) -> None:
    config_file = tmp_path / "config.properties"
    config_file.write_text("rootDirectory=C:\\\\www\\u0041\n", encoding="utf-8")

    assert load_config(config_file).root_directory == "C:\\wwwA"
