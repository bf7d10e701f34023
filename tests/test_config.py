# tests/test_config.py
import os

import pytest

from slither_core import ConfigError, SlitherConfig
from slither_core.config import (
    create_config_from_dict,
    load_config_from_env,
    load_config_from_toml,
)

valid_config_dict = {
    "nickname": "Marcuth",
    "skin_id": 15,
    "protocol_version": 11,
    "server_host": "45.158.39.114",
    "server_port": 444,
}


def test_config_happy_path():
    config = create_config_from_dict(valid_config_dict.copy())

    assert isinstance(config, SlitherConfig)
    assert config.nickname == "Marcuth"
    assert config.server_url == "ws://45.158.39.114:444/slither"
    assert config.origin == "http://slither.io"
    assert config.directory_url == "http://slither.io/i33628.txt"
    assert config.keep_alive_interval == 0.25


def test_config_string_values_are_converted():
    """环境变量只能提供字符串，工厂函数负责类型转换。"""
    config = create_config_from_dict(
        {
            "nickname": "bot",
            "skin_id": "3",
            "server_port": "444",
            "server_host": "1.2.3.4",
            "keep_alive_interval": "0.5",
        }
    )

    assert config.skin_id == 3
    assert config.server_port == 444
    assert config.protocol_version == 11
    assert config.keep_alive_interval == 0.5


def test_config_missing_nickname():
    config_dict = valid_config_dict.copy()
    del config_dict["nickname"]

    with pytest.raises(ConfigError, match="nickname"):
        create_config_from_dict(config_dict)


@pytest.mark.parametrize(
    "key, value",
    [
        ("skin_id", 256),
        ("protocol_version", 0),
        ("server_port", 0x1000000),
        ("keep_alive_interval", 0),
        ("nickname", "x" * 256),
        ("server_port", "not-a-port"),
    ],
)
def test_config_rejects_out_of_range_values(key, value):
    config_dict = valid_config_dict.copy()
    config_dict[key] = value

    with pytest.raises(ConfigError):
        create_config_from_dict(config_dict)


@pytest.mark.parametrize(
    "key, value",
    [
        ("skin_id", "15"),
        ("protocol_version", 11.0),
        ("server_port", "444"),
        ("skin_id", True),
        ("keep_alive_interval", "0.25"),
        ("nickname", None),
    ],
)
def test_config_direct_construction_checks_types(key, value):
    kwargs = {"nickname": "Marcuth", "skin_id": 15, "protocol_version": 11}
    kwargs[key] = value

    with pytest.raises(ConfigError, match=key):
        SlitherConfig(**kwargs)


def test_config_without_endpoint():
    config = create_config_from_dict({"nickname": "bot"})

    assert config.has_endpoint is False
    with pytest.raises(ConfigError):
        _ = config.server_url


def test_handshake_headers_use_game_domain():
    config = create_config_from_dict({"nickname": "bot", "game_domain": "example.test"})

    assert config.handshake_headers["Origin"] == "http://example.test"
    assert config.handshake_headers["Cache-Control"] == "no-cache"


def test_repr_contains_endpoint(valid_config):
    assert "127.0.0.1:444" in repr(valid_config)
    assert "<未指定>" in repr(SlitherConfig(nickname="a", skin_id=0, protocol_version=11))


def test_load_toml_profile(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        '[profile.default]\nnickname = "one"\n\n[profile.alt]\nnickname = "two"\nskin_id = 7\n',
        encoding="utf-8",
    )

    assert load_config_from_toml(path).nickname == "one"
    alt = load_config_from_toml(path, profile="alt")
    assert alt.nickname == "two"
    assert alt.skin_id == 7

    with pytest.raises(ConfigError, match="missing"):
        load_config_from_toml(path, profile="missing")


def test_load_toml_slither_section(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('[slither]\nnickname = "legacy"\n', encoding="utf-8")

    assert load_config_from_toml(path).nickname == "legacy"


def test_load_toml_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config_from_toml(tmp_path / "nope.toml")


def test_load_env_reads_dotenv(tmp_path, mocker):
    # 已存在的环境变量优先于 .env
    mocker.patch.dict(os.environ, {"SLITHER_SERVER_HOST": "9.9.9.9"}, clear=True)
    env_file = tmp_path / ".env"
    env_file.write_text(
        "SLITHER_NICKNAME=from_dotenv\nSLITHER_SKIN_ID=9\nSLITHER_SERVER_HOST=1.1.1.1\n",
        encoding="utf-8",
    )

    config = load_config_from_env(env_file)

    assert config.nickname == "from_dotenv"
    assert config.skin_id == 9
    assert config.server_host == "9.9.9.9"


def test_load_env_without_variables(tmp_path, mocker):
    mocker.patch.dict(os.environ, {}, clear=True)
    env_file = tmp_path / ".env"
    env_file.write_text("# empty\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="SLITHER_"):
        load_config_from_env(env_file)


def test_load_env_missing_dotenv_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config_from_env(tmp_path / "missing.env")
