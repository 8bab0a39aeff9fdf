"""
chatroom.schemas.rooms
~~~~~~~~~~~~~~~~~~~~~~

房间相关的 Pydantic 响应模型。
"""
from __future__ import annotations

from pydantic import BaseModel, Field


class RoomInfoData(BaseModel):
    """房间摘要信息数据类型"""

    room_id: str = Field(..., description="房间唯一标识")
    online_count: int = Field(..., ge=0, description="当前房间内的成员数")
