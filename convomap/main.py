import argparse
import asyncio
import logging
from typing import Any, Optional

from dotenv import load_dotenv

# Load environment variables from .env file before settings are read
load_dotenv()

from convomap import settings  # noqa: E402
from convomap.logging_config import setup_logging  # noqa: E402
from convomap.sse import SSEEventEmitter, SSEEventType  # noqa: E402
from convomap.storage import create_stores  # noqa: E402
from convomap.text_to_graph_pipeline.capture_session import CaptureSession  # noqa: E402
from convomap.text_to_graph_pipeline.chunk_classifier import build_chunk_classifier  # noqa: E402
from convomap.text_to_graph_pipeline.voice_to_text.speech_capture import SpeechRecognitionCapture  # noqa: E402

# Configure logging
logger = setup_logging('convomap.log', console_level=logging.ERROR)

INDENT = "    "


def render_event(event: dict[str, Any]) -> Optional[str]:
    """One console line per session event, None for events not shown"""
    data = event["data"]
    if event["event"] == SSEEventType.FINAL_TEXT.value:
        return f"  heard: {data['text']}"
    if event["event"] == SSEEventType.NODE_APPENDED.value:
        node = data["node"]
        return f"{INDENT * node['branchLevel']}[{node['sequenceIndex']}] {node['label']}"
    if event["event"] == SSEEventType.CLASSIFICATION_FALLBACK.value:
        return "  (classifier unavailable, used local heuristic)"
    if event["event"] == SSEEventType.CAPTURE_FAILED.value:
        return f"Capture failed: {data['error']}"
    if event["event"] == SSEEventType.SESSION_STOPPED.value:
        return f"Stopped. Title: {data['title']} ({data['nodeCount']} nodes)"
    return None


async def print_events(queue: asyncio.Queue) -> None:
    while True:
        event = await queue.get()
        line = render_event(event)
        if line:
            print(line)


async def main(owner_id: Optional[str] = None, conversation_id: Optional[str] = None,
               chunk_interval: Optional[float] = None):
    conversation_store, _ = create_stores()
    events: asyncio.Queue = asyncio.Queue()

    session = CaptureSession(
        build_chunk_classifier(),
        SpeechRecognitionCapture(),
        store=conversation_store,
        owner_id=owner_id,
        emitter=SSEEventEmitter(events),
        chunk_interval=chunk_interval,
    )
    if conversation_id:
        replayed = await session.load(conversation_id)
        print(f"Continuing conversation {conversation_id} ({replayed} nodes)")

    printer_task = asyncio.create_task(print_events(events))

    try:
        session.start()
        if not session.is_stopped:
            print(f"Ready to listen. A node is added every {session.chunk_interval:g}s of speech. Ctrl+C to stop.")
        while not session.is_stopped:
            await asyncio.sleep(0.5)
    finally:
        # Cleanup
        await session.stop()
        await session.wait_for_pending_writes(timeout=settings.PERSISTENCE_DRAIN_SECONDS)
        # let the printer drain the final events
        await asyncio.sleep(0)
        printer_task.cancel()
        await asyncio.gather(printer_task, return_exceptions=True)


def cli():
    """Command line entry point: map a live microphone conversation"""
    parser = argparse.ArgumentParser(description="ConvoMap live conversation mapping")
    parser.add_argument("--owner-id", type=str,
                        help="Persist the conversation under this owner")
    parser.add_argument("--conversation-id", type=str,
                        help="Continue an existing conversation")
    parser.add_argument("--interval", type=float,
                        help=f"Seconds per chunk (default {settings.CHUNK_INTERVAL_SECONDS:g})")
    args = parser.parse_args()

    try:
        asyncio.run(main(args.owner_id, args.conversation_id, args.interval))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")


if __name__ == "__main__":
    cli()
