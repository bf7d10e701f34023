# File: src/slither_core/exceptions.py
"""
Slither-Core - 异常体系 (Exceptions)

定义库内统一使用的异常类，以便上层应用（Bot / 脚本）能进行精细的错误处理。
"""


class SlitherError(Exception):
    """Slither-Core 所有内部异常的基类。

    上层应用可以通过捕获此异常来处理所有由 slither-core 抛出的已知错误。
    """

    pass


class ConfigError(SlitherError):
    """配置加载或校验失败。

    触发场景:
    1. 缺少必要字段 (如 nickname)。
    2. 字段越界 (如 skin_id 超出单字节范围、昵称超过 255 字节)。
    3. 找不到配置文件或环境变量。
    """

    pass


class TransportError(SlitherError):
    """Websocket 传输层错误 (I/O 级别)。

    触发场景:
    1. 握手失败 (DNS、拒绝连接、被服务器的 Bot 过滤拦截)。
    2. 发送 (send) 或接收 (recv) 时连接异常断开。
    3. 关闭连接失败。

    注意: 核心库不会自动重连，调用方需要从 Disconnected 状态重新 connect()。
    """

    pass


class StateError(SlitherError):
    """状态机错误 (FSM Violation)。"""

    pass


class AlreadyConnectedError(StateError):
    """在已持有 Socket 的情况下再次调用 connect()。"""

    pass


class NotConnectedError(StateError):
    """在没有打开的 Socket 时尝试发送数据包。"""

    pass


class ProtocolError(SlitherError):
    """协议交互错误 (逻辑级别)。

    触发场景:
    1. 入站帧长度不足，无法读取 Tag。
    2. 数据包字段越界。
    """

    pass


class MalformedChallengeError(ProtocolError):
    """Challenge 载荷长度不足 65 字节。

    这是硬失败：绝不截断或补齐后继续计算，因为错误的答案只会被服务器踢下线。
    """

    def __init__(self, length: int, required: int) -> None:
        super().__init__(f"Challenge 载荷长度不足: {length} < {required}")
        self.length = length
        self.required = required


class MalformedPacketError(ProtocolError):
    """入站或出站数据包结构损坏。"""

    pass


class DirectoryError(SlitherError):
    """服务器目录相关错误的基类。"""

    pass


class DirectoryFetchError(DirectoryError):
    """目录资源的 HTTP 获取失败 (连接错误、超时或非 2xx 状态码)。"""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedDirectoryError(DirectoryError):
    """目录文本无法解码为服务器记录。

    两种情况：去混淆后出现超过 255 的字节值 (例如收到 HTML 页面)，
    或严格模式下字节数不是 11 的整数倍。
    """

    def __init__(self, message: str, byte_count: int | None = None) -> None:
        super().__init__(message)
        self.byte_count = byte_count
