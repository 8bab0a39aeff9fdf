"""
chatroom
~~~~~~~~

基于 WebSocket 的多房间聊天中继服务。
"""
