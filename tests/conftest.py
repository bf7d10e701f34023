# tests/conftest.py
import sys
from pathlib import Path

import pytest

# 确保 src 目录在 sys.path 中
src_path = Path(__file__).resolve().parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from slither_core.config import SlitherConfig


@pytest.fixture
def valid_config():
    """
    [Fixture] 返回一个指向本地服务器的 SlitherConfig 对象。
    保活周期缩短到 10ms，方便在测试中观察定时器。
    """
    return SlitherConfig(
        nickname="Marcuth",
        skin_id=15,
        protocol_version=11,
        server_host="127.0.0.1",
        server_port=444,
        keep_alive_interval=0.01,
    )


def make_challenge(pairs: list[tuple[int, int]], filler: int = 0x41) -> bytes:
    """辅助函数：按 (b1, b2) 列表构造 65 字节的 Challenge 载荷。

    第 i 对字节位于偏移 17 + 2i / 18 + 2i，其余位置用 filler 填充。
    """
    payload = bytearray([filler] * 17)
    for b1, b2 in pairs:
        payload += bytes([b1, b2])
    return bytes(payload)


def pairs_for(v1: int, v2: int) -> list[tuple[int, int]]:
    """辅助函数：构造每一轮都解出同一组 (v1, v2) 的小写字节对。"""
    return [
        (
            97 + (v1 + 98 + 34 * i - 97) % 26,
            97 + (v2 + 115 + 34 * i - 97) % 26,
        )
        for i in range(24)
    ]


def obfuscate(data: bytes, first: str = "a") -> str:
    """辅助函数：把字节序列混淆成目录文本 (每字节拆为高低两个半字节)。"""
    chars = [first]
    values = [nibble for byte in data for nibble in (byte >> 4, byte & 0x0F)]
    for i, value in enumerate(values):
        chars.append(chr(97 + (value + 7 * i) % 26))
    return "".join(chars)


def record_bytes(host: str, port: int, auth_code: int, cluster_id: int) -> bytes:
    """辅助函数：按 Host(4B) + Port(3B) + AuthCode(3B) + ClusterId(1B) 拼出一条记录。"""
    return (
        bytes(int(octet) for octet in host.split("."))
        + port.to_bytes(3, "big")
        + auth_code.to_bytes(3, "big")
        + bytes([cluster_id])
    )
