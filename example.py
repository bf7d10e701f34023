# example.py
"""
这是一个 SlitherClient API 的最小示例。

它演示了如何将 slither-core 作为一个库导入到你自己的项目中，
并实现一个“选服 - 登录 - 保活 - 退出”的完整流程。

运行此示例：
1. 确保已安装依赖： pip install -e .
2. 可选：在根目录创建 config.toml，或设置 SLITHER_ 前缀的环境变量 / .env 文件。
3. 从项目根目录运行： python example.py
"""

import asyncio
import logging
import sys
from pathlib import Path

from slither_core import (
    ConfigError,
    SessionState,
    SlitherClient,
    SlitherError,
    __version__,
    create_config_from_dict,
    load_config_from_env,
    load_config_from_toml,
)

logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s - %(name)s - [%(levelname)s] - %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("SlitherExample")

PROJECT_ROOT = Path(__file__).resolve().parent


def on_status_change(status: SessionState, msg: str) -> None:
    icon_map = {
        SessionState.CONNECTING: "⏳",
        SessionState.AWAITING_CHALLENGE: "🧩",
        SessionState.AWAITING_SPAWN_ACK: "👤",
        SessionState.SPAWNED: "🐍",
        SessionState.DISCONNECTED: "🔌",
    }
    icon = icon_map.get(status, "ℹ️")
    print(f"\n>>> [UI Callback] {icon} 状态变更: {status.name} | 消息: {msg}\n")


def on_gameplay_packet(tag: str, payload: bytes) -> None:
    if tag == "v":
        logger.warning("角色死亡或被服务器断开")


def load_config():
    config_path = PROJECT_ROOT / "config.toml"
    if config_path.exists():
        logger.info(f"📄 发现配置文件: {config_path}")
        return load_config_from_toml(config_path)

    try:
        return load_config_from_env()
    except ConfigError:
        logger.warning("⚠️ 未找到配置，使用默认昵称并从目录选服")
        return create_config_from_dict({"nickname": "PythonBot", "skin_id": 15})


async def main() -> int:
    print(f"Slither-Core v{__version__} Example")

    try:
        config = load_config()
        if config.has_endpoint:
            client = SlitherClient(config, status_callback=on_status_change)
        else:
            client = await SlitherClient.create_with_first_server(
                config, status_callback=on_status_change
            )
    except SlitherError as e:
        logger.error(f"🔧 初始化失败: {e}")
        return 1

    client.add_packet_handler(on_gameplay_packet)

    try:
        await client.connect()
        logger.info(">>> 会话运行中 (按 Ctrl+C 退出)...")
        await client.wait_closed()
        logger.warning(">>> 连接已关闭。")
    except SlitherError as e:
        logger.error(f"⛔ 会话异常: {e}")
        return 1
    finally:
        await client.disconnect()

    return 0


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("收到用户中断信号 (Ctrl+C)，进程退出。")
