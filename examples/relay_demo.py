"""Minimal demonstration of a chat exchange through a running relay."""

import asyncio

from chat_core.client import ChatSession, RelayClient

if __name__ == "__main__":
    question = "What type has the highest likes ?"
    session = ChatSession(RelayClient())
    asyncio.run(session.submit(question))
    for message in session.conversation:
        prefix = "User" if message.role == "user" else "Assistant"
        print(f"{prefix}:", message.content)
