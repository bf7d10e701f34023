# File: src/slither_core/state.py
"""
Slither-Core - 状态模块

负责定义和存储所有易变的会话状态。
本模块不包含业务逻辑，仅作为数据容器由 SlitherClient 独占读写。
"""

from dataclasses import dataclass
from enum import Enum, auto


class SessionState(Enum):
    """会话生命周期状态枚举。

    状态流转示意:
    DISCONNECTED -> CONNECTING -> AWAITING_CHALLENGE -> AWAITING_SPAWN_ACK -> SPAWNED
                        |                 |                     |               |
                        +-----------------+---------------------+---------------+
                                        close / error / disconnect()
                                                    |
                                                    v
                                              DISCONNECTED
    """

    DISCONNECTED = auto()
    """没有持有任何 Socket。唯一允许调用 connect() 的状态。"""

    CONNECTING = auto()
    """正在进行 Websocket 握手。"""

    AWAITING_CHALLENGE = auto()
    """已发送 StartLogin，等待服务器下发 '6' Challenge。"""

    AWAITING_SPAWN_ACK = auto()
    """已回传答案和昵称，等待服务器的 'a' 初始设置包。"""

    SPAWNED = auto()
    """已生成角色。保活定时器正在运行。"""


@dataclass
class SlitherState:
    """存储一次会话的易变状态数据。

    该对象是非持久化的。每次重新 connect() 时，
    与保活相关的字段都会被重置。

    Attributes:
        status: 当前会话状态。
        endpoint: 当前连接的服务器地址 (host:port)。
        last_error: 最近一次发生的错误信息描述。
        keep_alive_sent: 本次会话已发送的保活包数量。
        last_keep_alive_ack: 最近一次收到 'p' 包的时间 (loop.time())。
    """

    status: SessionState = SessionState.DISCONNECTED
    endpoint: str = ""
    last_error: str = ""

    keep_alive_sent: int = 0
    last_keep_alive_ack: float | None = None

    @property
    def is_spawned(self) -> bool:
        return self.status == SessionState.SPAWNED

    def reset_session(self) -> None:
        """清空与单次连接绑定的字段。"""
        self.last_error = ""
        self.keep_alive_sent = 0
        self.last_keep_alive_ack = None
