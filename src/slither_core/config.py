"""
Slither-Core - 配置模块

负责配置的加载、解析与强类型转换。
支持从 TOML 文件、环境变量 (.env) 或字典中加载配置。
"""

import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_GAME_DOMAIN = "slither.io"
DEFAULT_DIRECTORY_PATH = "/i33628.txt"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/142.0.0.0 Safari/537.36"
)
DEFAULT_KEEP_ALIVE_INTERVAL = 0.25
MAX_PORT = 0xFFFFFF


@dataclass(frozen=True)
class SlitherConfig:
    """SlitherClient 的强类型配置对象。

    所有字段均为只读 (frozen=True)，确保配置在运行时不可变。

    Attributes:
        nickname: 玩家昵称 (UTF-8 编码后不超过 255 字节)。
        skin_id: 皮肤编号 (0-255)。
        protocol_version: 客户端协议版本号，发送时写入 version - 1。
        server_host: 游戏服务器地址。可为空，稍后从目录中选取。
        server_port: 游戏服务器端口。
        game_domain: 游戏域名，用于 Origin 头和目录地址。
        directory_path: 目录资源在游戏域名下的路径。
        user_agent: 握手时伪装的浏览器 UA。
        keep_alive_interval: 保活包发送周期 (秒)。
        connect_timeout: Websocket 握手超时 (秒)。
        http_timeout: 目录请求超时 (秒)。
    """

    nickname: str
    skin_id: int
    protocol_version: int
    server_host: str | None = None
    server_port: int | None = None
    game_domain: str = DEFAULT_GAME_DOMAIN
    directory_path: str = DEFAULT_DIRECTORY_PATH
    user_agent: str = DEFAULT_USER_AGENT
    keep_alive_interval: float = DEFAULT_KEEP_ALIVE_INTERVAL
    connect_timeout: float = 10.0
    http_timeout: float = 10.0

    def __post_init__(self) -> None:
        if not isinstance(self.nickname, str):
            raise ConfigError(f"nickname 必须是字符串: {self.nickname!r}")
        for name in ("skin_id", "protocol_version", "server_port"):
            value = getattr(self, name)
            if value is None and name == "server_port":
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{name} 必须是整数: {value!r}")
        for name in ("keep_alive_interval", "connect_timeout", "http_timeout"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"{name} 必须是数字: {value!r}")

        if len(self.nickname.encode("utf-8")) > 255:
            raise ConfigError("昵称过长: UTF-8 编码后超过 255 字节")
        if not 0 <= self.skin_id <= 255:
            raise ConfigError(f"skin_id 越界: {self.skin_id}")
        if not 1 <= self.protocol_version <= 256:
            raise ConfigError(f"protocol_version 越界: {self.protocol_version}")
        if self.server_port is not None and not 1 <= self.server_port <= MAX_PORT:
            raise ConfigError(f"端口越界: {self.server_port}")
        if self.keep_alive_interval <= 0:
            raise ConfigError("keep_alive_interval 必须大于 0")

    @property
    def has_endpoint(self) -> bool:
        return bool(self.server_host) and self.server_port is not None

    @property
    def server_url(self) -> str:
        """游戏服务器的 Websocket 地址。

        Raises:
            ConfigError: 尚未指定服务器。
        """
        if not self.has_endpoint:
            raise ConfigError("未指定游戏服务器 (server_host / server_port)")
        return f"ws://{self.server_host}:{self.server_port}/slither"

    @property
    def origin(self) -> str:
        return f"http://{self.game_domain}"

    @property
    def directory_url(self) -> str:
        return f"http://{self.game_domain}{self.directory_path}"

    @property
    def handshake_headers(self) -> dict[str, str]:
        """握手时附加的浏览器请求头 (User-Agent 由传输层单独设置)。"""
        return {
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
            "Accept-Encoding": "gzip, deflate, br",
            "Accept-Language": "en-US,en;q=0.9",
            "Origin": self.origin,
        }

    def __repr__(self) -> str:
        endpoint = (
            f"{self.server_host}:{self.server_port}" if self.has_endpoint else "<未指定>"
        )
        return (
            f"<{self.__class__.__name__} "
            f"server={endpoint}, "
            f"nickname='{self.nickname}', "
            f"skin={self.skin_id}, "
            f"protocol={self.protocol_version}>"
        )

    __str__ = __repr__


def create_config_from_dict(raw_data: dict[str, Any]) -> SlitherConfig:
    """通用工厂：将字典转换为强类型配置对象。

    负责字段的清洗、默认值注入和类型转换。

    Args:
        raw_data: 原始配置字典 (来自 TOML 或 Env)。

    Returns:
        SlitherConfig: 验证并转换后的配置对象。

    Raises:
        ConfigError: 当必要字段缺失或格式错误时抛出。
    """
    try:

        def _req(key: str) -> Any:
            """获取必要字段，缺失则报错"""
            if key not in raw_data:
                raise ConfigError(f"配置缺失: 缺少必要字段 '{key}'")
            return raw_data[key]

        def _int(key: str, default: int | None = None) -> int | None:
            val = raw_data.get(key, default)
            if val is None or val == "":
                return None
            try:
                return int(val)
            except (TypeError, ValueError):
                raise ConfigError(f"整数格式无效 '{key}': {val}")

        def _float(key: str, default: float) -> float:
            val = raw_data.get(key, default)
            try:
                return float(val)
            except (TypeError, ValueError):
                raise ConfigError(f"数值格式无效 '{key}': {val}")

        host = raw_data.get("server_host") or None

        return SlitherConfig(
            nickname=str(_req("nickname")),
            skin_id=_int("skin_id", 0),
            protocol_version=_int("protocol_version", 11),
            server_host=str(host) if host else None,
            server_port=_int("server_port"),
            game_domain=str(raw_data.get("game_domain", DEFAULT_GAME_DOMAIN)),
            directory_path=str(raw_data.get("directory_path", DEFAULT_DIRECTORY_PATH)),
            user_agent=str(raw_data.get("user_agent", DEFAULT_USER_AGENT)),
            keep_alive_interval=_float(
                "keep_alive_interval", DEFAULT_KEEP_ALIVE_INTERVAL
            ),
            connect_timeout=_float("connect_timeout", 10.0),
            http_timeout=_float("http_timeout", 10.0),
        )

    except Exception as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(f"配置生成失败: {e}") from e


def load_config_from_toml(file_path: Path, profile: str = "default") -> SlitherConfig:
    """从 TOML 文件加载配置。

    支持多层级查找策略:
    1. [profile.xxx]: 优先查找指定的 profile 块。
    2. [slither]: 单一配置块。
    3. Root: 兼容根目录直接配置。

    Args:
        file_path: TOML 文件路径。
        profile: 配置预设名。默认为 "default"。

    Returns:
        SlitherConfig: 配置对象。

    Raises:
        ConfigError: 文件读取失败或 Profile 不存在。
    """
    if not file_path.exists():
        raise ConfigError(f"配置文件未找到: {file_path}")

    try:
        with open(file_path, "rb") as f:
            data = tomllib.load(f)
    except Exception as e:
        raise ConfigError(f"读取 TOML 失败: {e}") from e

    raw_config = {}

    if "profile" in data:
        if profile not in data["profile"]:
            raise ConfigError(f"未找到预设: [profile.{profile}]")
        raw_config = data["profile"][profile]
    elif "slither" in data:
        if profile != "default":
            logger.warning(f"配置仅包含 [slither] 节，忽略 profile='{profile}'。")
        raw_config = data["slither"]
    else:
        raw_config = data

    return create_config_from_dict(raw_config)


def load_config_from_env(dotenv_path: Path | None = None) -> SlitherConfig:
    """从环境变量加载配置 (Docker/Cloud Friendly)。

    先通过 python-dotenv 加载 .env 文件 (已存在的环境变量优先)，
    再读取所有以 `SLITHER_` 开头的环境变量。
    例如: `SLITHER_NICKNAME` -> `nickname`。

    Args:
        dotenv_path: .env 文件路径。为 None 时由 python-dotenv 自动向上查找。

    Returns:
        SlitherConfig: 配置对象。

    Raises:
        ConfigError: 未检测到任何相关环境变量。
    """
    if dotenv_path is not None and not dotenv_path.exists():
        raise ConfigError(f".env 文件未找到: {dotenv_path}")
    load_dotenv(dotenv_path=dotenv_path, override=False)

    env_map = {
        "nickname": "NICKNAME",
        "skin_id": "SKIN_ID",
        "protocol_version": "PROTOCOL_VERSION",
        "server_host": "SERVER_HOST",
        "server_port": "SERVER_PORT",
        "game_domain": "GAME_DOMAIN",
        "directory_path": "DIRECTORY_PATH",
        "user_agent": "USER_AGENT",
        "keep_alive_interval": "KEEP_ALIVE_INTERVAL",
        "connect_timeout": "CONNECT_TIMEOUT",
        "http_timeout": "HTTP_TIMEOUT",
    }

    raw_data = {}

    for cfg_key, env_suffix in env_map.items():
        val = os.environ.get(f"SLITHER_{env_suffix}")
        if val is not None:
            raw_data[cfg_key] = val

    if not raw_data:
        raise ConfigError("未检测到 SLITHER_ 前缀的环境变量")

    return create_config_from_dict(raw_data)
