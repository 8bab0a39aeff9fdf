"""
chatroom.schemas.api_response
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

REST 接口的统一应答体。

聊天本身走 WebSocket 线协议，不使用此结构；只有房间摘要接口
（``/api/rooms``）和全局异常处理器会用它包装返回值。
"""
from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """房间摘要接口与错误响应共用的 JSON 外壳::

        {"code": 200, "data": [{"room_id": "lobby", "online_count": 2}], "msg": "success"}
    """

    code: int = Field(default=200, description="状态码，与 HTTP 状态保持一致")
    data: T = Field(..., description="房间摘要数据；失败时为 null")
    msg: str = Field(default="success", description="状态消息；失败时为错误描述")

    @classmethod
    def ok(cls, data: T) -> ApiResponse[T]:
        return cls(data=data)

    @classmethod
    def fail(cls, msg: str, code: int = 500, data: Any = None) -> ApiResponse[Any]:
        return cls(code=code, data=data, msg=msg)
