"""
chatroom.services.member
~~~~~~~~~~~~~~~~~~~~~~~~

房间成员领域模型 —— 把一条连接与它当前所在的房间、显示名关联起来。

成员生命周期::

    Unregistered ──connect──▶ Idle ──join──▶ InRoom
                                ▲              │
                                └────leave─────┘
    (任意状态) ──disconnect──▶ Unregistered

``Unregistered`` 即注册表中不存在该连接的记录，不在本类中表示。
"""
from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chatroom.services.connection import ClientConnection


class MemberState(str, Enum):
    """已注册成员的状态。"""

    IDLE = "idle"
    IN_ROOM = "in_room"


class Member:
    """一条在线连接对应的成员记录。

    同一连接在任何时刻最多只有一个 ``Member``，重复 join 时原地修改。

    Attributes:
        connection: 所属连接（非拥有引用）。
        display_name: 显示名。
        room: 当前所在房间，未加入时为 ``None``。
    """

    def __init__(
        self,
        connection: ClientConnection,
        display_name: str,
        room: str | None = None,
    ) -> None:
        self.connection = connection
        self.display_name = display_name
        self.room = room

    @property
    def state(self) -> MemberState:
        return MemberState.IN_ROOM if self.room else MemberState.IDLE

    @property
    def in_room(self) -> bool:
        return self.state is MemberState.IN_ROOM

    def __repr__(self) -> str:
        return (
            f"Member(conn={self.connection.conn_id!r}, name={self.display_name!r}, "
            f"room={self.room!r})"
        )
