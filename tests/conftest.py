"""
tests.conftest
~~~~~~~~~~~~~~

共享 pytest fixtures —— 提供记录所有投递消息的假连接，
使注册表的单元测试无需真实 WebSocket 即可运行。
"""
from __future__ import annotations

import itertools
import json
import os
from typing import Any

import pytest

# ── 在所有测试导入前设置环境变量 ─────────────────────────────────────
os.environ.setdefault("ENVIRONMENT", "test")  # 激活 .env.test 配置

from chatroom.services.registry import ChatRegistry  # noqa: E402

_ids = itertools.count(1)


class FakeConnection:
    """模拟 ``ClientConnection``：``enqueue`` 直接把消息解码后记录下来。"""

    def __init__(self, name: str = "") -> None:
        self.conn_id = name or f"fake-{next(_ids)}"
        self.is_open: bool = True
        self.sent: list[dict[str, Any]] = []

    def enqueue(self, message: str) -> bool:
        self.sent.append(json.loads(message))
        return True

    def messages(self) -> list[str]:
        """所有收到的消息文本（不区分 system / chat）。"""
        return [event["payload"]["message"] for event in self.sent]

    def clear(self) -> None:
        self.sent.clear()


@pytest.fixture()
def registry() -> ChatRegistry:
    return ChatRegistry()


@pytest.fixture()
def make_conn():
    """工厂 fixture：按名字生成假连接。"""

    def _make(name: str = "") -> FakeConnection:
        return FakeConnection(name)

    return _make
