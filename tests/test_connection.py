"""
tests.test_connection
~~~~~~~~~~~~~~~~~~~~~

ClientConnection 发送队列与写协程的单元测试。
"""
from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import WebSocket
from fastapi.websockets import WebSocketState

from chatroom.services.connection import ClientConnection


def mock_websocket() -> MagicMock:
    ws = MagicMock(spec=WebSocket)
    ws.client_state = WebSocketState.CONNECTED
    ws.application_state = WebSocketState.CONNECTED
    ws.send_text = AsyncMock()
    return ws


class TestClientConnection:
    """测试连接句柄的投递行为。"""

    @pytest.mark.asyncio
    async def test_writer_sends_in_order(self) -> None:
        ws = mock_websocket()
        conn = ClientConnection(ws)
        conn.start()

        assert conn.enqueue("a") is True
        assert conn.enqueue("b") is True
        await asyncio.wait_for(conn._queue.join(), timeout=1.0)

        assert [c.args[0] for c in ws.send_text.call_args_list] == ["a", "b"]
        await conn.close()

    @pytest.mark.asyncio
    async def test_enqueue_on_disconnected_socket_is_dropped(self) -> None:
        ws = mock_websocket()
        ws.client_state = WebSocketState.DISCONNECTED
        conn = ClientConnection(ws)

        assert conn.is_open is False
        assert conn.enqueue("lost") is False

    @pytest.mark.asyncio
    async def test_full_queue_drops_message(self) -> None:
        """队列满时新消息被丢弃，不阻塞调用方。"""
        conn = ClientConnection(mock_websocket(), queue_size=1)

        assert conn.enqueue("first") is True
        assert conn.enqueue("second") is False

    @pytest.mark.asyncio
    async def test_send_failure_marks_closed(self) -> None:
        """写出失败后连接标记为关闭，之后的消息直接跳过。"""
        ws = mock_websocket()
        ws.send_text.side_effect = RuntimeError("socket gone")
        conn = ClientConnection(ws)
        conn.start()

        conn.enqueue("x")
        await asyncio.wait_for(conn._queue.join(), timeout=1.0)

        assert conn.is_open is False
        assert conn.enqueue("y") is False
        assert ws.send_text.call_count == 1
        await conn.close()

    @pytest.mark.asyncio
    async def test_close_stops_writer(self) -> None:
        conn = ClientConnection(mock_websocket())
        conn.start()

        await conn.close()

        assert conn.is_open is False
        assert conn._writer is None
        assert conn.enqueue("late") is False

    def test_conn_ids_are_unique(self) -> None:
        ids = {ClientConnection(mock_websocket()).conn_id for _ in range(50)}

        assert len(ids) == 50
