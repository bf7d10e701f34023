# src/slither_core/protocols/__init__.py
"""
Slither 协议层 (Protocol Layer)

本包负责协议数据包的纯粹构建 (Build) 与解析 (Parse)。

- 不包含任何 socket 操作或网络 I/O。
- 不包含任何状态管理 (State)。
- 不依赖于 core 或 network 层。
"""

from . import constants
from .challenge import decode_challenge
from .constants import GameplayTag, InboundTag
from .directory import EndpointRecord, decode_directory
from .packets import (
    InboundPacket,
    build_boost,
    build_challenge_answer,
    build_keep_alive,
    build_move,
    build_set_username_and_skin,
    build_start_login,
    parse_inbound,
    parse_move_packet,
)

# 公共 API
__all__ = [
    "constants",
    "InboundTag",
    "GameplayTag",
    "decode_challenge",
    "EndpointRecord",
    "decode_directory",
    "InboundPacket",
    "parse_inbound",
    "build_start_login",
    "build_challenge_answer",
    "build_set_username_and_skin",
    "build_keep_alive",
    "build_boost",
    "build_move",
    "parse_move_packet",
]
