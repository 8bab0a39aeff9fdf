"""
chatroom.api.ws
~~~~~~~~~~~~~~~

WebSocket 实时聊天接口。

客户端连接到 ``/`` 后通过 JSON 事件加入房间、发送消息、离开房间，
所有状态由全局 ``ChatRegistry`` 维护。

消息协议（每帧一个 JSON 对象，文本帧或 UTF-8 二进制帧均可）:
  - ``{"type": "join",  "payload": {"roomId", "userName"?}}`` —— 加入房间
  - ``{"type": "chat",  "payload": {"message"}}``             —— 发送聊天消息
  - ``{"type": "leave", "payload": {"roomId"}}``              —— 离开房间
"""
from __future__ import annotations

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from chatroom.core.config import settings
from chatroom.core.logging import conn_id_ctx_var, get_logger
from chatroom.services.connection import ClientConnection
from chatroom.services.registry import ChatRegistry

logger = get_logger(__name__)

router: APIRouter = APIRouter()


@router.websocket("/")
async def websocket_chat_endpoint(websocket: WebSocket) -> None:
    """WebSocket 聊天端点。

    接收循环逐帧交给注册表处理；出站消息经由连接自己的发送队列写出。
    无论正常断开还是异常退出，都会执行 ``on_disconnect`` 并回收写协程。

    Args:
        websocket: FastAPI WebSocket 连接对象。
    """
    registry: ChatRegistry = websocket.app.state.registry
    connection = ClientConnection(websocket, queue_size=settings.SEND_QUEUE_SIZE)
    token = conn_id_ctx_var.set(connection.conn_id)

    try:
        await websocket.accept()
        connection.start()
        await registry.on_connect(connection)

        try:
            while True:
                # 文本帧与二进制帧都交给注册表解析，非法内容只回复格式错误
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))
                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes") or b""
                await registry.handle_message(connection, raw)
        except WebSocketDisconnect:
            pass  # 正常断开
        except Exception as e:
            logger.error("WebSocket 异常: %s", e, exc_info=True)
        finally:
            await registry.on_disconnect(connection)
            await connection.close()
    finally:
        conn_id_ctx_var.reset(token)
