"""
chatroom.services.registry
~~~~~~~~~~~~~~~~~~~~~~~~~~

连接注册表与路由器 —— 全局唯一，由 FastAPI lifespan 创建并挂载到 ``app.state``。

职责:
  - 维护 ``连接 → Member`` 映射，以及 ``房间 → 连接集合`` 索引；
  - 处理入站的 join / chat / leave 事件与连接的建立、断开；
  - 计算每次广播的接收者集合，把序列化后的事件交给各连接的发送队列。

所有状态修改以及"读取 → 快照接收者"的过程都在 ``asyncio.Lock`` 内完成；
实际投递在锁外进行，且只是非阻塞入队。
"""
from __future__ import annotations

import asyncio

from chatroom.core.errors import EventParseError, NotInRoomError
from chatroom.core.logging import get_logger
from chatroom.schemas.events import (
    INVALID_FORMAT_MESSAGE,
    NOT_IN_ROOM_MESSAGE,
    ChatBroadcast,
    ChatRequest,
    JoinRequest,
    LeaveRequest,
    OutboundEvent,
    SystemNotice,
    dump_event,
    parse_event,
)
from chatroom.schemas.rooms import RoomInfoData
from chatroom.services.connection import ClientConnection
from chatroom.services.member import Member

logger = get_logger(__name__)

DEFAULT_USER_NAME: str = "Anonymous"


def join_announcement(display_name: str, occupancy: int) -> str:
    """生成加入房间的系统提示文本。"""
    noun = "person" if occupancy == 1 else "people"
    return f"{display_name} has joined the room ({occupancy} {noun} in room)"


class ChatRegistry:
    """聊天连接注册表（全局单例）。

    - ``on_connect(conn)``               → 注册空闲成员
    - ``on_join(conn, room_id, name)``   → 加入/切换房间并广播加入提示
    - ``on_chat(conn, message)``         → 转发给同房间的其他成员
    - ``on_leave(conn, room_id)``        → 清空成员所在房间并广播离开提示
    - ``on_disconnect(conn)``            → 移除成员并广播断开提示
    - ``handle_message(conn, raw)``      → 解析一帧原始文本并分发

    Attributes:
        default_user_name: 客户端未提供昵称时使用的显示名。
    """

    def __init__(self, default_user_name: str = DEFAULT_USER_NAME) -> None:
        self.default_user_name = default_user_name
        self._lock = asyncio.Lock()
        self._members: dict[ClientConnection, Member] = {}
        self._rooms: dict[str, set[ClientConnection]] = {}

    # ── 生命周期事件 ──────────────────────────────────────────────────

    async def on_connect(self, connection: ClientConnection) -> Member:
        """为新连接注册一个空闲成员，不广播。"""
        async with self._lock:
            member = self._members.get(connection)
            if member is None:
                member = Member(connection, self.default_user_name)
                self._members[connection] = member
            total = len(self._members)
        logger.info("新连接 | conn=%s | 当前连接数: %d", connection.conn_id, total)
        return member

    async def on_join(
        self,
        connection: ClientConnection,
        room_id: str,
        user_name: str | None = None,
    ) -> int:
        """加入（或切换到）指定房间，并向房间内所有人（含自己）广播加入提示。

        Returns:
            加入后该房间的成员数。
        """
        display_name = user_name or self.default_user_name
        async with self._lock:
            member = self._resolve(connection)
            self._move(member, room_id)
            member.display_name = display_name
            occupancy = len(self._rooms[room_id])
            recipients = self._snapshot(room_id)

        self._deliver(recipients, SystemNotice.of(join_announcement(display_name, occupancy)))
        logger.info(
            "加入房间 | user=%s | room=%s | 房间人数: %d", display_name, room_id, occupancy,
        )
        return occupancy

    async def on_chat(self, connection: ClientConnection, message: str) -> int:
        """把聊天消息转发给同房间的其他成员，发送者自己不会收到。

        Returns:
            实际快照到的接收者数量。

        Raises:
            NotInRoomError: 发送者尚未加入任何房间。
        """
        async with self._lock:
            member = self._resolve(connection)
            if not member.in_room:
                raise NotInRoomError(connection.conn_id)
            sender = member.display_name
            recipients = self._snapshot(member.room, exclude=connection)

        self._deliver(recipients, ChatBroadcast.of(message, sender))
        return len(recipients)

    async def on_leave(self, connection: ClientConnection, room_id: str) -> None:
        """离开房间：成员重置为空闲状态后，向 ``room_id`` 广播离开提示。

        广播目标取自 leave 事件携带的房间，而非成员记录中的房间。
        """
        async with self._lock:
            member = self._resolve(connection)
            display_name = member.display_name
            previous = member.room
            self._detach(member)
            self._members[connection] = Member(connection, display_name)
            recipients = self._snapshot(room_id)

        self._deliver(recipients, SystemNotice.of(f"{display_name} has left the room"))
        if previous is not None and previous != room_id:
            logger.warning(
                "leave 房间与记录不一致 | user=%s | 记录=%s | 请求=%s",
                display_name, previous, room_id,
            )
        logger.info("离开房间 | user=%s | room=%s", display_name, room_id)

    async def on_disconnect(self, connection: ClientConnection) -> None:
        """连接断开：移除成员，若其在房间内则通知该房间。"""
        async with self._lock:
            member = self._members.pop(connection, None)
            if member is None:
                return
            room_id = member.room
            self._detach(member)
            recipients = self._snapshot(room_id) if room_id else []
            total = len(self._members)

        if room_id:
            self._deliver(recipients, SystemNotice.of(f"{member.display_name} has disconnected"))
        logger.info(
            "连接断开 | user=%s | room=%s | 剩余连接数: %d", member.display_name, room_id, total,
        )

    # ── 入站消息分发 ──────────────────────────────────────────────────

    async def handle_message(self, connection: ClientConnection, raw: str | bytes) -> None:
        """解析一帧原始文本并分发到对应的处理函数。

        解析失败或未加入房间就发言时，只回复发送者一条系统消息，不影响其他连接。
        """
        try:
            event = parse_event(raw)
        except EventParseError as e:
            logger.warning("消息格式错误 | conn=%s | %s", connection.conn_id, e)
            self.reply(connection, SystemNotice.of(INVALID_FORMAT_MESSAGE))
            return

        if isinstance(event, JoinRequest):
            await self.on_join(connection, event.payload.room_id, event.payload.user_name)
        elif isinstance(event, ChatRequest):
            try:
                await self.on_chat(connection, event.payload.message)
            except NotInRoomError:
                self.reply(connection, SystemNotice.of(NOT_IN_ROOM_MESSAGE))
        elif isinstance(event, LeaveRequest):
            await self.on_leave(connection, event.payload.room_id)

    def reply(self, connection: ClientConnection, event: OutboundEvent) -> None:
        """只发给单条连接（错误提示等）。"""
        self._deliver([connection], event)

    # ── 只读视图 ──────────────────────────────────────────────────────

    async def occupancy(self, room_id: str) -> int:
        """指定房间当前的成员数，房间不存在时为 0。"""
        async with self._lock:
            return len(self._rooms.get(room_id, ()))

    async def list_rooms(self) -> list[RoomInfoData]:
        """列出所有非空房间的摘要信息。"""
        async with self._lock:
            return [
                RoomInfoData(room_id=room_id, online_count=len(conns))
                for room_id, conns in sorted(self._rooms.items())
            ]

    async def get_member(self, connection: ClientConnection) -> Member | None:
        async with self._lock:
            return self._members.get(connection)

    @property
    def connection_count(self) -> int:
        return len(self._members)

    # ── 内部工具（调用方必须持有锁）──────────────────────────────────

    def _resolve(self, connection: ClientConnection) -> Member:
        member = self._members.get(connection)
        if member is None:
            # 事件先于 on_connect 到达，补建一个空闲成员
            logger.warning("未注册的连接发来事件，自动注册 | conn=%s", connection.conn_id)
            member = Member(connection, self.default_user_name)
            self._members[connection] = member
        return member

    def _move(self, member: Member, room_id: str) -> None:
        self._detach(member)
        member.room = room_id
        self._rooms.setdefault(room_id, set()).add(member.connection)

    def _detach(self, member: Member) -> None:
        if member.room is None:
            return
        conns = self._rooms.get(member.room)
        if conns is not None:
            conns.discard(member.connection)
            if not conns:
                del self._rooms[member.room]
        member.room = None

    def _snapshot(
        self, room_id: str, exclude: ClientConnection | None = None,
    ) -> list[ClientConnection]:
        return [
            conn for conn in self._rooms.get(room_id, ())
            if conn is not exclude and self._members[conn].room == room_id
        ]

    @staticmethod
    def _deliver(recipients: list[ClientConnection], event: OutboundEvent) -> None:
        """尽力投递：跳过已关闭的连接，不重试、不确认。"""
        if not recipients:
            return
        text = dump_event(event)
        for conn in recipients:
            if conn.is_open:
                conn.enqueue(text)
