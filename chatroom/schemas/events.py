"""
chatroom.schemas.events
~~~~~~~~~~~~~~~~~~~~~~~

WebSocket 线协议的 Pydantic 模型。

入站事件以 ``type`` 字段区分（join / chat / leave），出站事件分为
系统通知（system）和聊天广播（chat）。字段名在线上使用 camelCase
（``roomId`` / ``userName`` / ``isSelf``），Python 侧使用 snake_case。
"""
from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from chatroom.core.errors import EventParseError

INVALID_FORMAT_MESSAGE: str = "Invalid message format"
NOT_IN_ROOM_MESSAGE: str = "You're not connected to any room"


class _WireModel(BaseModel):
    """线协议模型基类：允许按字段名构造，忽略未知字段。"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ── 入站 ──────────────────────────────────────────────────────────────

class JoinPayload(_WireModel):
    # 空字符串不作为房间键：空房间与"未加入任何房间"在聊天路由上无法区分，按格式错误处理
    room_id: str = Field(
        ..., alias="roomId", min_length=1,
        description="要加入的房间 ID，必须非空（空串视为格式错误）",
    )
    user_name: str | None = Field(default=None, alias="userName", description="显示名")


class ChatPayload(_WireModel):
    message: str = Field(..., description="聊天文本")
    # 客户端回显的字段，仅接受不使用，路由以服务端记录为准
    room_id: str | None = Field(default=None, alias="roomId")
    user_name: str | None = Field(default=None, alias="userName")


class LeavePayload(_WireModel):
    room_id: str = Field(
        ..., alias="roomId", min_length=1,
        description="要离开的房间 ID，必须非空；离开提示广播到此房间",
    )


class JoinRequest(_WireModel):
    """加入房间请求。"""

    type: Literal["join"] = "join"
    payload: JoinPayload


class ChatRequest(_WireModel):
    """发送聊天消息请求。"""

    type: Literal["chat"] = "chat"
    payload: ChatPayload


class LeaveRequest(_WireModel):
    """离开房间请求。"""

    type: Literal["leave"] = "leave"
    payload: LeavePayload


InboundEvent = Annotated[
    Union[JoinRequest, ChatRequest, LeaveRequest],
    Field(discriminator="type"),
]

_inbound_adapter: TypeAdapter[InboundEvent] = TypeAdapter(InboundEvent)


def parse_event(raw: str | bytes) -> JoinRequest | ChatRequest | LeaveRequest:
    """把一帧原始文本解析为入站事件。

    Raises:
        EventParseError: 非 JSON、非对象、未知 ``type`` 或字段校验失败。
    """
    try:
        return _inbound_adapter.validate_json(raw)
    except ValidationError as e:
        raise EventParseError(str(e)) from e


# ── 出站 ──────────────────────────────────────────────────────────────

class SystemPayload(_WireModel):
    message: str


class SystemNotice(_WireModel):
    """服务端发出的系统通知（加入/离开/断开/错误提示）。"""

    type: Literal["system"] = "system"
    payload: SystemPayload

    @classmethod
    def of(cls, message: str) -> SystemNotice:
        """快捷构造一条系统通知。"""
        return cls(payload=SystemPayload(message=message))


class ChatBroadcastPayload(_WireModel):
    message: str
    user_name: str = Field(..., alias="userName")
    is_self: bool = Field(default=False, alias="isSelf")


class ChatBroadcast(_WireModel):
    """转发给房间内其他成员的聊天消息。"""

    type: Literal["chat"] = "chat"
    payload: ChatBroadcastPayload

    @classmethod
    def of(cls, message: str, user_name: str) -> ChatBroadcast:
        """构造一条转发给他人的聊天消息（``isSelf`` 恒为 False）。"""
        return cls(payload=ChatBroadcastPayload(message=message, user_name=user_name, is_self=False))


OutboundEvent = Union[SystemNotice, ChatBroadcast]


def dump_event(event: OutboundEvent) -> str:
    """序列化出站事件为线上 JSON 文本。"""
    return event.model_dump_json(by_alias=True)
