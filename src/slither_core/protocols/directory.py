# src/slither_core/protocols/directory.py
"""
服务器目录解码 (DirectoryCodec)

目录资源是一段混淆过的纯文本，解码后得到若干 11 字节的服务器记录:
Host(4B) + Port(3B, 大端) + AuthCode(3B, 大端) + ClusterId(1B)。
"""

import logging
from dataclasses import dataclass

from ..exceptions import MalformedDirectoryError
from .constants import DirectoryConst

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EndpointRecord:
    """一个可连接的游戏服务器。

    Attributes:
        host: 点分十进制的 IPv4 地址。
        port: 24 位无符号端口。
        auth_code: 24 位无符号认证码。
        cluster_id: 8 位集群编号。
    """

    host: str
    port: int
    auth_code: int
    cluster_id: int

    @property
    def url(self) -> str:
        return f"ws://{self.host}:{self.port}/slither"


def _to_24bit(chunk: bytes) -> int:
    return int.from_bytes(chunk, "big")


def _deobfuscate(text: str) -> bytes:
    """去混淆：丢弃首字符，逐字符去位移后两两合并为字节。

    Raises:
        MalformedDirectoryError: 合并后的值超过一个字节 (文本不是目录资源)。
    """
    values = []
    for i, char in enumerate(text[1:]):
        code = ord(char) - DirectoryConst.CHAR_BASE
        values.append((code - DirectoryConst.POSITION_SHIFT * i) % DirectoryConst.ALPHABET)

    # 奇数个值时，最后一个高半字节与 0 合并
    if len(values) % 2:
        values.append(0)

    merged = [
        values[i] * DirectoryConst.NIBBLE + values[i + 1]
        for i in range(0, len(values), 2)
    ]
    for offset, value in enumerate(merged):
        if value > 0xFF:
            raise MalformedDirectoryError(
                f"目录内容无法解码: 第 {offset} 字节的值 {value} 超出 0-255"
            )
    return bytes(merged)


def _parse_record(chunk: bytes) -> EndpointRecord:
    host_end = DirectoryConst.HOST_LEN
    port_end = host_end + DirectoryConst.PORT_LEN
    auth_end = port_end + DirectoryConst.AUTH_CODE_LEN

    return EndpointRecord(
        host=".".join(str(octet) for octet in chunk[:host_end]),
        port=_to_24bit(chunk[host_end:port_end]),
        auth_code=_to_24bit(chunk[port_end:auth_end]),
        cluster_id=chunk[auth_end],
    )


def decode_directory(text: str, strict: bool = False) -> list[EndpointRecord]:
    """将混淆的目录文本解码为服务器列表。

    列表顺序即服务器给出的顺序，约定首个条目为首选。

    Args:
        text: 目录资源的原始文本。
        strict: 为 True 时，残缺的尾部记录会抛出异常而不是被丢弃。

    Returns:
        list[EndpointRecord]: 解码出的服务器记录。

    Raises:
        MalformedDirectoryError: 文本不是有效的目录资源，或 strict 模式下
            字节数不是 11 的整数倍。
    """
    data = _deobfuscate(text.rstrip("\r\n"))
    size = DirectoryConst.RECORD_SIZE
    remainder = len(data) % size

    if remainder:
        if strict:
            raise MalformedDirectoryError(
                f"目录数据长度异常: {len(data)} 字节无法整除记录长度 {size}",
                byte_count=len(data),
            )
        logger.warning(f"目录尾部存在 {remainder} 字节的残缺记录，已丢弃")

    records = [
        _parse_record(data[offset : offset + size])
        for offset in range(0, len(data) - remainder, size)
    ]
    logger.debug(f"目录解码完成: {len(records)} 个服务器")
    return records
