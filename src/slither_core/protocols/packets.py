# File: src/slither_core/protocols/packets.py
"""
Slither 协议封包构建器与入站分类器 (PacketCodec)

负责将 Python 数据结构转换为符合协议规范的二进制字节流 (bytes)，
并按 Tag 对入站帧进行分类。
本模块是无状态的 (Stateless)，不持有任何配置或会话信息。
"""

import logging
import math
from dataclasses import dataclass

from ..exceptions import MalformedPacketError
from .constants import (
    PAYLOAD_OFFSET,
    TAG_OFFSET,
    ChallengeConst,
    InboundTag,
    MoveConst,
    PacketCode,
)

logger = logging.getLogger(__name__)

# =========================================================================
# 登录 (StartLogin / ChallengeAnswer / SetUsernameAndSkin)
# =========================================================================


def build_start_login() -> bytes:
    """构建 StartLogin 包 ('c')。"""
    return PacketCode.START_LOGIN


def build_challenge_answer(answer: bytes) -> bytes:
    """构建 Challenge 答案包。

    答案原样发送，不附加任何帧头字节。

    Raises:
        MalformedPacketError: 答案长度不是 24 字节。
    """
    if len(answer) != ChallengeConst.ANSWER_LEN:
        raise MalformedPacketError(
            f"Challenge 答案长度错误: {len(answer)} != {ChallengeConst.ANSWER_LEN}"
        )
    return bytes(answer)


def build_set_username_and_skin(
    nickname: str, skin_id: int, protocol_version: int
) -> bytes:
    """构建 SetUsernameAndSkin 包 ('s')。

    结构: Tag(0x73) + Version-1(1B) + SkinId(1B) + NickLen(1B) + Nick(UTF-8)

    Args:
        nickname: 昵称，按 UTF-8 编码后长度不得超过 255 字节。
        skin_id: 皮肤编号 (0-255)。
        protocol_version: 客户端协议版本 (1-256)。

    Returns:
        bytes: 构建好的数据包。
    """
    nick_bytes = nickname.encode("utf-8")
    try:
        header = bytes(
            [
                PacketCode.SET_USERNAME_AND_SKIN,
                protocol_version - 1,
                skin_id,
                len(nick_bytes),
            ]
        )
    except ValueError as e:
        raise MalformedPacketError(f"SetUsernameAndSkin 字段越界: {e}") from e
    return header + nick_bytes


# =========================================================================
# 保活与操控
# =========================================================================


def build_keep_alive() -> bytes:
    """构建 KeepAlive 包 (0xFB)。"""
    return PacketCode.KEEP_ALIVE


def build_boost(on: bool) -> bytes:
    """构建加速开关包 (253 开 / 254 关)。"""
    return PacketCode.BOOST_ON if on else PacketCode.BOOST_OFF


def build_move(angle_degrees: float) -> bytes:
    """构建转向包。

    角度先归一化到 [0, 360)，再线性映射到 [0, 250] 并四舍五入 (half-up)。
    """
    normalized = angle_degrees % MoveConst.FULL_TURN
    value = math.floor(normalized / MoveConst.FULL_TURN * MoveConst.MAX_VALUE + 0.5)
    return bytes([value])


def parse_move_packet(data: bytes) -> int:
    """解析转向包，返回 [0, 250] 内的方向值。

    Raises:
        MalformedPacketError: 长度不是 1 字节或值越界。
    """
    if len(data) != 1 or data[0] > MoveConst.MAX_VALUE:
        raise MalformedPacketError(f"无效的转向包: {data.hex()}")
    return data[0]


# =========================================================================
# 入站分类
# =========================================================================


@dataclass(frozen=True)
class InboundPacket:
    """一个已分类的入站帧。

    Attributes:
        kind: 核心层的分类结果，非核心 Tag 一律为 InboundTag.FORWARD。
        tag: 原始 Tag 字符。
        payload: 从偏移 3 开始的原始载荷。
    """

    kind: InboundTag
    tag: str
    payload: bytes


def parse_inbound(data: bytes) -> InboundPacket:
    """按偏移 2 处的 Tag 对入站帧分类。

    Raises:
        MalformedPacketError: 帧长度不足 3 字节。
    """
    if len(data) < PAYLOAD_OFFSET:
        raise MalformedPacketError(f"入站帧过短 ({len(data)} 字节)，无法读取 Tag")

    tag = chr(data[TAG_OFFSET])
    return InboundPacket(
        kind=InboundTag.classify(tag),
        tag=tag,
        payload=bytes(data[PAYLOAD_OFFSET:]),
    )
