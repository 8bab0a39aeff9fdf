"""
chatroom.services.connection
~~~~~~~~~~~~~~~~~~~~~~~~~~~~

客户端连接句柄 —— 包装一条已接受的 WebSocket，并为它配备独立的发送队列。

广播方只调用非阻塞的 ``enqueue()``，真正的 ``send_text`` 由每条连接
自己的写协程完成，慢客户端只会堆满自己的队列，不会拖住其他人。
"""
from __future__ import annotations

import asyncio
import uuid

from fastapi import WebSocket
from fastapi.websockets import WebSocketState

from chatroom.core.logging import get_logger

logger = get_logger(__name__)


class ClientConnection:
    """一条客户端 WebSocket 连接。

    Attributes:
        websocket: 底层 FastAPI WebSocket 对象。
        conn_id: 连接的短标识，仅用于日志。
    """

    def __init__(self, websocket: WebSocket, queue_size: int = 100) -> None:
        self.websocket = websocket
        self.conn_id: str = f"ws-{uuid.uuid4().hex[:8]}"
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)
        self._writer: asyncio.Task[None] | None = None
        self._closed: bool = False

    @property
    def is_open(self) -> bool:
        """底层传输当前是否可写。"""
        if self._closed:
            return False
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    def start(self) -> None:
        """启动写协程。必须在 ``websocket.accept()`` 之后、事件循环内调用。"""
        if self._writer is None:
            self._writer = asyncio.create_task(self._write_loop())

    def enqueue(self, message: str) -> bool:
        """把一条已序列化的消息放入发送队列（不阻塞）。

        Returns:
            是否成功入队。连接已关闭或队列已满时返回 False，消息被丢弃。
        """
        if not self.is_open:
            return False
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning("发送队列已满，丢弃消息 | conn=%s", self.conn_id)
            return False
        return True

    async def _write_loop(self) -> None:
        while True:
            message = await self._queue.get()
            try:
                await self.websocket.send_text(message)
            except Exception as e:
                # 对端已断开：标记关闭，后续广播直接跳过，不重试
                logger.debug("发送失败，连接已不可用 | conn=%s | %s", self.conn_id, e)
                self._closed = True
                self._drain()
                return
            finally:
                self._queue.task_done()

    def _drain(self) -> None:
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()

    async def close(self) -> None:
        """标记连接关闭并停止写协程，未发送的消息直接丢弃。"""
        self._closed = True
        writer, self._writer = self._writer, None
        self._drain()
        if writer is not None:
            writer.cancel()
            await asyncio.gather(writer, return_exceptions=True)
