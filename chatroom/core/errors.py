"""
chatroom.core.errors
~~~~~~~~~~~~~~~~~~~~

聊天中继的异常类型。

这些异常都只影响单条连接的单个事件，由路由层捕获后以系统消息
回复给发送方，不会向上传播到 WebSocket 端点之外。
"""
from __future__ import annotations


class ChatRelayError(Exception):
    """聊天中继异常基类。"""


class EventParseError(ChatRelayError):
    """入站消息无法解析（非 JSON、未知 type、字段缺失或类型错误）。"""


class NotInRoomError(ChatRelayError):
    """连接尚未加入任何房间就发送了聊天消息。"""

    def __init__(self, conn_id: str) -> None:
        super().__init__(f"connection {conn_id} is not in any room")
        self.conn_id = conn_id
