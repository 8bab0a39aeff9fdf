"""
chatroom.api.room
~~~~~~~~~~~~~~~~~

房间只读 REST 接口，路由前缀 ``/api``。

端点:
  - ``GET  /rooms``            → 当前非空房间及其人数
  - ``GET  /rooms/{room_id}``  → 指定房间人数（不存在时为 0）
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from chatroom.api.deps import get_registry
from chatroom.schemas.api_response import ApiResponse
from chatroom.schemas.rooms import RoomInfoData
from chatroom.services.registry import ChatRegistry

router: APIRouter = APIRouter()


@router.get(
    "/rooms",
    summary="获取活跃房间列表",
    response_model=ApiResponse[list[RoomInfoData]],
)
async def list_rooms(
    registry: ChatRegistry = Depends(get_registry),
) -> ApiResponse[list[RoomInfoData]]:
    """返回所有至少有一名成员的房间。"""
    rooms = await registry.list_rooms()
    return ApiResponse.ok(data=rooms)


@router.get(
    "/rooms/{room_id}",
    summary="获取房间详情",
    response_model=ApiResponse[RoomInfoData],
)
async def room_info(
    room_id: str,
    registry: ChatRegistry = Depends(get_registry),
) -> ApiResponse[RoomInfoData]:
    """返回指定房间的在线人数。

    房间是成员的隐式分组，没有人时人数为 0，不会报 404。

    Args:
        room_id: 房间唯一标识。
    """
    count = await registry.occupancy(room_id)
    return ApiResponse.ok(data=RoomInfoData(room_id=room_id, online_count=count))
