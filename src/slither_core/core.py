# File: src/slither_core/core.py
"""
Slither 会话引擎 (Connection Session)

职责：
1. 资源组装：State + Network + Config。
2. 状态机：Connect -> StartLogin -> Challenge -> Spawn -> KeepAlive。
3. 资源独占：单条 Websocket 连接、接收任务与保活定时器都只属于一个实例。

所有事件 (连接建立、收到帧、连接关闭、定时器触发) 都在同一个事件循环上
依次执行，每个处理函数运行到结束，不需要内部加锁。
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace
from typing import Any

from .config import SlitherConfig
from .directory import DirectoryClient
from .exceptions import (
    AlreadyConnectedError,
    DirectoryFetchError,
    MalformedPacketError,
    NotConnectedError,
    SlitherError,
    TransportError,
)
from .network import NetworkClient
from .protocols import packets
from .protocols.challenge import decode_challenge
from .protocols.constants import GameplayTag, InboundTag
from .state import SessionState, SlitherState

logger = logging.getLogger(__name__)

# 回调函数类型别名：支持同步或异步函数
StatusCallback = Callable[[SessionState, str], Any | Awaitable[Any]]
PacketHandler = Callable[[str, bytes], Any | Awaitable[Any]]


class SlitherClient:
    """Slither 会话引擎 (Async)。"""

    def __init__(
        self,
        config: SlitherConfig,
        status_callback: StatusCallback | None = None,
        net_client: NetworkClient | None = None,
    ) -> None:
        """初始化会话引擎。

        Args:
            config: 全局配置对象。
            status_callback: 初始状态回调，等价于 add_listener。
            net_client: 可选的网络客户端 (测试时注入 Mock)。
        """
        self.config = config

        self._listeners: list[StatusCallback] = []
        self._packet_handlers: list[PacketHandler] = []
        if status_callback:
            self.add_listener(status_callback)

        self._state = SlitherState()
        self.net_client = net_client or NetworkClient(config)

        self._handshake_task: asyncio.Task | None = None
        self._reader_task: asyncio.Task | None = None
        self._keep_alive_task: asyncio.Task | None = None
        self._keep_alive_stop = asyncio.Event()
        self._closed = asyncio.Event()
        self._closed.set()
        self._failure: SlitherError | None = None

    @classmethod
    async def create_with_first_server(
        cls,
        config: SlitherConfig,
        directory: DirectoryClient | None = None,
        **kwargs: Any,
    ) -> "SlitherClient":
        """获取服务器目录，并绑定到列表中的第一个服务器。

        Args:
            config: 全局配置对象 (可不含服务器地址)。
            directory: 可选的目录客户端，默认按 config 构造。
            **kwargs: 透传给构造函数。

        Raises:
            DirectoryFetchError: 目录获取失败或目录为空。
        """
        directory = directory or DirectoryClient(config)
        servers = await directory.fetch_servers()
        if not servers:
            raise DirectoryFetchError("目录为空，没有可用的服务器")

        first = servers[0]
        logger.info(f"选择服务器 {first.host}:{first.port} (cluster={first.cluster_id})")
        bound = replace(config, server_host=first.host, server_port=first.port)
        return cls(bound, **kwargs)

    @property
    def state(self) -> SlitherState:
        """获取当前会话状态的只读副本。

        返回的是一个副本 (Copy)，修改它不会影响引擎内部状态。
        """
        return replace(self._state)

    @property
    def is_connected(self) -> bool:
        return self.net_client.is_open

    @property
    def keep_alive_active(self) -> bool:
        return self._keep_alive_task is not None and not self._keep_alive_task.done()

    def add_listener(self, callback: StatusCallback) -> None:
        """注册状态变更监听器。"""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: StatusCallback) -> None:
        """移除状态变更监听器。"""
        if callback in self._listeners:
            self._listeners.remove(callback)

    def add_packet_handler(self, handler: PacketHandler) -> None:
        """注册游戏逻辑处理器，接收所有非核心 Tag 的 (tag, payload)。"""
        if handler not in self._packet_handlers:
            self._packet_handlers.append(handler)

    def remove_packet_handler(self, handler: PacketHandler) -> None:
        if handler in self._packet_handlers:
            self._packet_handlers.remove(handler)

    # =========================================================================
    # 生命周期
    # =========================================================================

    async def connect(self) -> None:
        """连接服务器并发起登录。

        握手成功后立即发送 StartLogin，并启动后台接收任务。
        之后的 Challenge 应答与 Spawn 均由入站帧驱动。

        Raises:
            AlreadyConnectedError: 当前不处于 DISCONNECTED 状态。
            ConfigError: 配置中没有服务器地址。
            TransportError: 握手或首包发送失败。

        握手期间调用 disconnect() 会取消握手，connect() 静默返回。
        """
        if self._state.status != SessionState.DISCONNECTED or self.net_client.is_open:
            raise AlreadyConnectedError(
                f"当前状态 {self._state.status.name}，请先 disconnect()"
            )

        url = self.config.server_url
        self._state.reset_session()
        self._state.endpoint = f"{self.config.server_host}:{self.config.server_port}"
        self._failure = None
        self._closed.clear()
        self._update_status(SessionState.CONNECTING, f"正在连接 {url}")

        # 握手放在独立任务中，disconnect() 可以取消并等待它结束
        handshake = asyncio.create_task(
            self.net_client.connect(url), name="SlitherHandshakeTask"
        )
        self._handshake_task = handshake
        try:
            await handshake
        except asyncio.CancelledError:
            if asyncio.current_task().cancelling():
                if self._handshake_task is handshake:
                    await self._teardown("连接被取消")
                raise
            logger.debug("握手被 disconnect() 打断")
            return
        except TransportError as e:
            if self._handshake_task is handshake:
                self._handshake_task = None
                self._state.last_error = str(e)
                self._closed.set()
                self._update_status(SessionState.DISCONNECTED, f"连接失败: {e}")
            raise

        # 握手完成前已被 disconnect() 接管，连接由 _teardown 关闭
        if self._handshake_task is not handshake:
            return
        self._handshake_task = None

        await self._handle_open()
        self._reader_task = asyncio.create_task(
            self._receive_loop(), name="SlitherReceiveTask"
        )

    async def disconnect(self) -> None:
        """断开连接。任何状态下都可以调用，重复调用无副作用。

        不等待未完成的发送排空。

        Raises:
            TransportError: 关闭 Socket 失败 (状态仍会回到 DISCONNECTED)。
        """
        error = await self._teardown("已主动断开")
        if error:
            raise error

    async def wait_closed(self) -> None:
        """等待会话回到 DISCONNECTED。

        Raises:
            SlitherError: 会话因错误终止时，重新抛出该错误。
        """
        await self._closed.wait()
        if self._failure:
            raise self._failure

    async def __aenter__(self) -> "SlitherClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.disconnect()

    # =========================================================================
    # 操控
    # =========================================================================

    async def move(self, angle: float) -> None:
        """转向到指定角度 (度)。

        Raises:
            NotConnectedError: 没有打开的连接。
            TransportError: 发送失败。
        """
        await self._send_command(packets.build_move(angle))

    async def boost(self, on: bool = True) -> None:
        """开启或关闭加速。"""
        await self._send_command(packets.build_boost(on))

    async def _send_command(self, packet: bytes) -> None:
        if not self.net_client.is_open:
            raise NotConnectedError("没有打开的连接，无法发送操控指令")

        if not self._state.is_spawned:
            logger.debug(f"尚未生成角色 ({self._state.status.name})，指令照常发送")

        try:
            await self.net_client.send(packet)
        except TransportError as e:
            await self._fail(e)
            raise

    # =========================================================================
    # 事件处理
    # =========================================================================

    async def _handle_open(self) -> None:
        """[Event] Socket 已打开：立即发送 StartLogin。"""
        self._update_status(SessionState.AWAITING_CHALLENGE, "已连接，发送 StartLogin")
        try:
            await self.net_client.send(packets.build_start_login())
        except TransportError as e:
            await self._fail(e)
            raise

    async def handle_message(self, data: bytes) -> None:
        """[Event] 收到一个入站帧。

        Raises:
            MalformedChallengeError: Challenge 载荷不足 65 字节。
            TransportError: 应答发送失败。
        """
        try:
            packet = packets.parse_inbound(data)
        except MalformedPacketError as e:
            logger.warning(f"忽略无效帧: {e}")
            return

        if packet.kind is InboundTag.PRE_INIT_CHALLENGE:
            await self._handle_challenge(packet.payload)
        elif packet.kind is InboundTag.SPAWN_ACKNOWLEDGED:
            self._handle_spawn_ack()
        elif packet.kind is InboundTag.KEEP_ALIVE_ACK:
            self._state.last_keep_alive_ack = asyncio.get_running_loop().time()
        else:
            await self._forward(packet)

    async def _handle_challenge(self, payload: bytes) -> None:
        if self._state.status != SessionState.AWAITING_CHALLENGE:
            logger.warning(
                f"状态 {self._state.status.name} 下收到 Challenge，已忽略"
            )
            return

        answer = decode_challenge(payload)
        await self.net_client.send(packets.build_challenge_answer(answer))
        await self.net_client.send(
            packets.build_set_username_and_skin(
                self.config.nickname,
                self.config.skin_id,
                self.config.protocol_version,
            )
        )
        self._update_status(
            SessionState.AWAITING_SPAWN_ACK,
            f"Challenge 已应答，昵称 '{self.config.nickname}' 已发送",
        )

    def _handle_spawn_ack(self) -> None:
        if self._state.status != SessionState.AWAITING_SPAWN_ACK:
            logger.warning(f"状态 {self._state.status.name} 下收到 Spawn 确认，已忽略")
            return

        self._update_status(SessionState.SPAWNED, "Spawn 完成")
        self._start_keep_alive()

    async def _forward(self, packet: packets.InboundPacket) -> None:
        logger.debug(
            f"转发 {GameplayTag.describe(packet.tag)} ({len(packet.payload)} 字节)"
        )
        for handler in list(self._packet_handlers):
            try:
                result = handler(packet.tag, packet.payload)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"游戏逻辑处理器异常 (tag={packet.tag!r}): {e}")

    async def _receive_loop(self) -> None:
        """[Internal] 接收循环，逐帧分发，直到连接关闭。"""
        try:
            while self.net_client.is_open:
                data = await self.net_client.receive()
                if data is None:
                    break
                await self.handle_message(data)
        except asyncio.CancelledError:
            logger.debug("接收任务被取消")
            raise
        except SlitherError as e:
            await self._fail(e)
            return

        await self._teardown("连接已关闭")

    # =========================================================================
    # 保活定时器
    # =========================================================================

    def _start_keep_alive(self) -> None:
        if self.keep_alive_active:
            return

        self._keep_alive_stop.clear()
        self._keep_alive_task = asyncio.create_task(
            self._keep_alive_loop(), name="SlitherKeepAliveTask"
        )
        logger.debug(f"保活定时器已启动 (周期 {self.config.keep_alive_interval}s)")

    async def _keep_alive_loop(self) -> None:
        """[Internal] 每个周期发送一次 KeepAlive，直到收到停止信号。"""
        try:
            while not self._keep_alive_stop.is_set():
                try:
                    await asyncio.wait_for(
                        self._keep_alive_stop.wait(),
                        timeout=self.config.keep_alive_interval,
                    )
                except asyncio.TimeoutError:
                    await self._handle_keep_alive_tick()
        except asyncio.CancelledError:
            logger.debug("保活任务被取消")
            raise

    async def _handle_keep_alive_tick(self) -> None:
        """[Event] 定时器触发。"""
        try:
            await self.net_client.send(packets.build_keep_alive())
        except SlitherError as e:
            await self._fail(e)
            return
        self._state.keep_alive_sent += 1

    async def _stop_keep_alive(self) -> None:
        self._keep_alive_stop.set()
        task, self._keep_alive_task = self._keep_alive_task, None
        if task is None or task.done() or task is asyncio.current_task():
            return

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("保活定时器已停止")

    # =========================================================================
    # 内部工具
    # =========================================================================

    async def _fail(self, error: SlitherError) -> None:
        """记录导致会话终止的错误并拆除会话。"""
        self._failure = error
        self._state.last_error = str(error)
        logger.error(f"会话异常终止: {error}")
        await self._teardown(f"连接异常: {error}")

    async def _teardown(self, msg: str) -> TransportError | None:
        """停止定时器、释放 Socket 并回到 DISCONNECTED。

        Returns:
            TransportError | None: 关闭 Socket 时发生的错误。
        """
        await self._stop_keep_alive()

        handshake, self._handshake_task = self._handshake_task, None
        if handshake and not handshake.done():
            handshake.cancel()
            try:
                await handshake
            except (asyncio.CancelledError, TransportError):
                # 结果由等待握手的 connect() 处理
                pass

        close_error = None
        try:
            await self.net_client.close()
        except TransportError as e:
            logger.warning(f"关闭连接失败: {e}")
            close_error = e

        reader, self._reader_task = self._reader_task, None
        if reader and not reader.done() and reader is not asyncio.current_task():
            reader.cancel()
            try:
                await reader
            except asyncio.CancelledError:
                pass

        if self._state.status != SessionState.DISCONNECTED:
            self._update_status(SessionState.DISCONNECTED, msg)
        self._closed.set()
        return close_error

    def _update_status(self, status: SessionState, msg: str) -> None:
        """更新内部状态并异步触发所有回调。"""
        self._state.status = status
        logger.info(f"[{status.name}] {msg}")

        for callback in self._listeners:
            try:
                if inspect.iscoroutinefunction(callback):
                    asyncio.create_task(callback(status, msg))  # type: ignore
                else:
                    loop = asyncio.get_running_loop()
                    loop.call_soon(callback, status, msg)
            except RuntimeError:
                # 事件循环尚未运行或已关闭
                pass
            except Exception as e:
                logger.error(f"回调执行异常: {e}")
