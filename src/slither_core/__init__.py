# src/slither_core/__init__.py
"""
Slither-Core v1.0.0
Slither 二进制 Websocket 协议的异步客户端核心库。
"""

# 暴露核心配置
from .config import (
    SlitherConfig,
    create_config_from_dict,
    load_config_from_env,
    load_config_from_toml,
)

# 暴露引擎与状态
from .core import SlitherClient
from .directory import DirectoryClient

# 暴露异常体系 (方便上层 try-except)
from .exceptions import (
    AlreadyConnectedError,
    ConfigError,
    DirectoryError,
    DirectoryFetchError,
    MalformedChallengeError,
    MalformedDirectoryError,
    MalformedPacketError,
    NotConnectedError,
    ProtocolError,
    SlitherError,
    StateError,
    TransportError,
)
from .protocols import EndpointRecord, GameplayTag, InboundTag
from .state import SessionState, SlitherState

__version__ = "1.0.0"

__all__ = [
    "SlitherClient",
    "DirectoryClient",
    "SlitherConfig",
    "SlitherState",
    "SessionState",
    "EndpointRecord",
    "GameplayTag",
    "InboundTag",
    "create_config_from_dict",
    "load_config_from_env",
    "load_config_from_toml",
    "SlitherError",
    "ConfigError",
    "TransportError",
    "StateError",
    "AlreadyConnectedError",
    "NotConnectedError",
    "ProtocolError",
    "MalformedChallengeError",
    "MalformedPacketError",
    "DirectoryError",
    "DirectoryFetchError",
    "MalformedDirectoryError",
]
