from fastapi import Request

from chatroom.services.registry import ChatRegistry


def get_registry(request: Request) -> ChatRegistry:
    return request.app.state.registry
