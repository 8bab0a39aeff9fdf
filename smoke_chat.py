import asyncio
import json

import httpx
from websockets.asyncio.client import connect

BASE = "127.0.0.1:8080"


async def recv_json(websocket, timeout: float = 2.0) -> dict | None:
    try:
        raw = await asyncio.wait_for(websocket.recv(), timeout=timeout)
    except asyncio.TimeoutError:
        return None
    return json.loads(raw)


async def check_health():
    print("=" * 50)
    print(" 验证 /health ")
    print("=" * 50)
    async with httpx.AsyncClient() as client:
        resp = await client.get(f"http://{BASE}/health")
        print(f"状态码: {resp.status_code} | {resp.json()}")


async def check_lobby_scenario():
    print("\n" + "=" * 50)
    print(" 验证 Alice / Bob 在 lobby 聊天 ")
    print("=" * 50)

    uri = f"ws://{BASE}/"
    async with connect(uri) as alice, connect(uri) as bob:
        await alice.send(json.dumps({"type": "join", "payload": {"roomId": "lobby", "userName": "Alice"}}))
        print(f" Alice <- {await recv_json(alice)}")

        await bob.send(json.dumps({"type": "join", "payload": {"roomId": "lobby", "userName": "Bob"}}))
        print(f" Bob   <- {await recv_json(bob)}")
        print(f" Alice <- {await recv_json(alice)}")

        await alice.send(json.dumps({"type": "chat", "payload": {"message": "hi"}}))
        print(f" Bob   <- {await recv_json(bob)}")

        await bob.send(json.dumps({"type": "leave", "payload": {"roomId": "lobby"}}))
        print(f" Alice <- {await recv_json(alice)}")

        await bob.send(json.dumps({"type": "chat", "payload": {"message": "还在吗"}}))
        print(f" Bob   <- {await recv_json(bob)}")

        await bob.send('{"type":"bogus"}')
        print(f" Bob   <- {await recv_json(bob)}")


async def main():
    print("🟢 开始执行聊天中继冒烟验证...\n")
    print(f"要求: 在运行本脚本前，请确保服务已经在 http://{BASE} 运行。\n")

    try:
        await check_health()
        await check_lobby_scenario()
    except Exception as e:
        print(f"验证过程中遇到错误，请确认服务已启动: {e}")

    print("\n🏁 验证结束。")


if __name__ == '__main__':
    asyncio.run(main())
