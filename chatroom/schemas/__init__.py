"""
chatroom.schemas
~~~~~~~~~~~~~~~~
Pydantic schemas for the wire protocol and the REST API.
"""
from chatroom.schemas.api_response import ApiResponse
from chatroom.schemas.events import (
    ChatBroadcast,
    ChatRequest,
    JoinRequest,
    LeaveRequest,
    SystemNotice,
    dump_event,
    parse_event,
)
from chatroom.schemas.rooms import RoomInfoData

# Call model_rebuild to resolve forward references in generic Pydantic models.
ApiResponse.model_rebuild()
