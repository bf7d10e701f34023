# src/slither_core/network.py
"""
Slither-Core - 网络模块 (Network) [Websocket Edition]

封装 Websocket 连接的建立、发送、接收与关闭逻辑。
该模块屏蔽了 websockets 库的异常细节，向会话层提供纯粹的 bytes 收发接口，
所有底层错误统一转换为 TransportError。
"""

import asyncio
import logging

from websockets.asyncio.client import ClientConnection
from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import (
    ConnectionClosed,
    ConnectionClosedOK,
    WebSocketException,
)

from .config import SlitherConfig
from .exceptions import AlreadyConnectedError, NotConnectedError, TransportError

logger = logging.getLogger(__name__)

# 主动断开时不等待发送缓冲区排空
CLOSE_TIMEOUT = 1.0


class NetworkClient:
    """
    封装单条 Websocket 连接的客户端。同一时刻最多持有一条连接。
    """

    def __init__(self, config: SlitherConfig):
        self.config = config
        self.connection: ClientConnection | None = None

    @property
    def is_open(self) -> bool:
        return self.connection is not None

    async def connect(self, url: str) -> None:
        """
        建立 Websocket 连接，携带伪装的浏览器请求头。

        Raises:
            AlreadyConnectedError: 已经持有连接。
            TransportError: 握手失败或超时。
        """
        if self.connection is not None:
            raise AlreadyConnectedError("已持有 Websocket 连接")

        try:
            self.connection = await ws_connect(
                url,
                additional_headers=self.config.handshake_headers,
                user_agent_header=self.config.user_agent,
                open_timeout=self.config.connect_timeout,
                close_timeout=CLOSE_TIMEOUT,
            )
            logger.debug(f"Websocket 握手成功: {url}")
        except (OSError, WebSocketException, asyncio.TimeoutError) as e:
            self.connection = None
            raise TransportError(f"连接失败 {url}: {e}") from e

    async def send(self, packet: bytes) -> None:
        """
        发送一个二进制帧。

        Raises:
            NotConnectedError: 没有打开的连接。
            TransportError: 连接已断开或发送失败。
        """
        if self.connection is None:
            raise NotConnectedError("没有打开的 Websocket 连接")

        try:
            await self.connection.send(packet)
        except (ConnectionClosed, OSError) as e:
            raise TransportError(f"发送失败: {e}") from e

        logger.debug(f"-> {packet.hex()}")

    async def receive(self) -> bytes | None:
        """
        接收一个帧。

        Returns:
            bytes | None: 帧数据；连接被正常关闭时返回 None。

        Raises:
            NotConnectedError: 没有打开的连接。
            TransportError: 连接异常断开。
        """
        if self.connection is None:
            raise NotConnectedError("没有打开的 Websocket 连接")

        try:
            data = await self.connection.recv()
        except ConnectionClosedOK:
            logger.debug("Websocket 连接已正常关闭")
            return None
        except (ConnectionClosed, OSError) as e:
            raise TransportError(f"连接异常断开: {e}") from e

        if isinstance(data, str):
            data = data.encode("utf-8")
        return data

    async def close(self) -> None:
        """关闭连接。无论成功与否，连接所有权都会被立即释放。"""
        connection, self.connection = self.connection, None
        if connection is None:
            return

        try:
            await connection.close()
        except (OSError, WebSocketException) as e:
            raise TransportError(f"关闭连接失败: {e}") from e
        logger.debug("Websocket 连接已关闭")
