"""
Session Memory Example

Demonstrates the full lifecycle: create a session, ingest a batch of
memories, search them by similarity, page through them chronologically,
delete some, and finally delete the session.

Requires a Qdrant server on localhost:6333 and OPENAI_API_KEY.
"""

import asyncio
import logging

from session_memory import MemoryConfig, create_memory_system


async def main():
    print("=== Session Memory Example ===\n")

    logging.basicConfig(level=logging.INFO)

    # Reads MEMO_* environment variables; overrides here for the demo
    config = MemoryConfig(database_url="sqlite:///memo_demo.db", search_limit=3)
    system = create_memory_system(config)

    try:
        session = await system.sessions.create_session("May", tags=["demo"])
        print(f"Created session {session.id}\n")

        ids = await system.memories.add_memories(
            session.id,
            [
                "My name is May.",
                "I am 14 years old.",
                "I am of mixed German-Japanese descent, US national.",
            ],
        )
        print(f"Added memories: {ids}\n")

        for query in ["What is your nationality?", "your age"]:
            result = await system.memories.search(session.id, query)
            print(f"Search: {query}")
            for memory, score in zip(result.memories, result.scores):
                print(f"  {score:.3f}  {memory.content}")
            print()

        page = await system.memories.list_memories(session.id, limit=2)
        while True:
            for memory in page.memories:
                print(f"[{memory.created_at:%H:%M:%S}] {memory.content}")
            if page.next_cursor is None:
                break
            page = await system.memories.list_memories(
                session.id, cursor=page.next_cursor, limit=2
            )
        print()

        deleted = await system.memories.delete_memories(session.id, ids[:1])
        print(f"Deleted {deleted} memory\n")

        await system.sessions.delete_session(session.id)
        print(f"Deleted session {session.id}")
        print(f"Metrics: {system.get_metrics()}")
    finally:
        await system.close()


if __name__ == "__main__":
    asyncio.run(main())
