# src/slither_core/directory.py
"""
Slither-Core - 服务器目录客户端 (DirectoryClient)

从游戏域名下的固定路径获取混淆的目录文本，并解码为服务器列表。
没有重试策略：任何传输层失败都以 DirectoryFetchError 直接抛出。
"""

import logging

import httpx

from .config import SlitherConfig
from .exceptions import DirectoryFetchError
from .protocols.directory import EndpointRecord, decode_directory

logger = logging.getLogger(__name__)


class DirectoryClient:
    """服务器目录的异步 HTTP 客户端。"""

    def __init__(
        self,
        config: SlitherConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            config: 全局配置对象，提供目录地址、UA 与超时。
            transport: 可选的 httpx 传输层 (测试时注入 MockTransport)。
        """
        self.config = config
        self._transport = transport

    async def fetch_text(self) -> str:
        """获取目录原始文本。

        Raises:
            DirectoryFetchError: 连接失败、超时或非 2xx 响应。
        """
        url = self.config.directory_url
        headers = {
            "User-Agent": self.config.user_agent,
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
        }

        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=self.config.http_timeout
            ) as client:
                response = await client.get(url, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise DirectoryFetchError(
                f"目录请求被拒绝 {url}: HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise DirectoryFetchError(f"目录请求失败 {url}: {e}") from e

        logger.debug(f"目录获取成功: {len(response.text)} 字符")
        return response.text

    async def fetch_servers(self, strict: bool = False) -> list[EndpointRecord]:
        """获取并解码服务器列表。

        Args:
            strict: 透传给 decode_directory，为 True 时残缺尾记录会抛出
                MalformedDirectoryError。

        Returns:
            list[EndpointRecord]: 按服务器给出的顺序排列的服务器记录。

        Raises:
            DirectoryFetchError: 请求失败或返回错误状态码。
            MalformedDirectoryError: 返回内容不是有效的目录资源。
        """
        text = await self.fetch_text()
        servers = decode_directory(text, strict=strict)
        logger.info(f"从 {self.config.directory_url} 获取到 {len(servers)} 个服务器")
        return servers
