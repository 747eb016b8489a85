import asyncio
import json
import time
from typing import Any, Dict, List, Literal, Optional

from dotenv import load_dotenv

# Load environment variables from .env file before settings are read
load_dotenv()

from fastapi import FastAPI, HTTPException, Query, Request  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from pydantic import Field  # noqa: E402
from starlette.responses import StreamingResponse  # noqa: E402

from convomap import settings  # noqa: E402
from convomap.analysis import analyze_sentiment, classify_conversation, tag_segment_sentiments  # noqa: E402
from convomap.logging_config import setup_logging  # noqa: E402
from convomap.models import CamelModel, TranscriptSegment  # noqa: E402
from convomap.sse import SSEEventEmitter  # noqa: E402
from convomap.storage import RecordNotFoundError, create_stores  # noqa: E402
from convomap.text_to_graph_pipeline.capture_session import CaptureSession  # noqa: E402
from convomap.text_to_graph_pipeline.chunk_classifier import build_chunk_classifier  # noqa: E402
from convomap.text_to_graph_pipeline.graph_builder import ConversationGraph  # noqa: E402
from convomap.text_to_graph_pipeline.layout import compute_layout  # noqa: E402
from convomap.text_to_graph_pipeline.voice_to_text import PushCaptureSource  # noqa: E402

# Configure logging - log to both file and console
logger = setup_logging('convomap_server.log', console_level=settings.LOG_LEVEL)

# FastAPI app setup
app = FastAPI(title="ConvoMap Server", description="API for mapping conversations into branching graphs")

# SSE event queue for streaming session progress
SSE_QUEUE_SIZE = 1000
sse_event_queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=SSE_QUEUE_SIZE)

# Shared collaborators, replaceable in tests
classifier = build_chunk_classifier()
conversation_store, transcript_store = create_stores()

# Active and stopped capture sessions by id
sessions: Dict[str, CaptureSession] = {}


@app.on_event("shutdown")
async def shutdown_event():
    """Stop every running session so titles are finalized"""
    for session in list(sessions.values()):
        if not session.is_stopped:
            await session.stop()
            await session.wait_for_pending_writes(timeout=settings.PERSISTENCE_DRAIN_SECONDS)
    logger.info("ConvoMap server shut down")


# Add CORS middleware for web frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify exact origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Add middleware to log all requests
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    client = request.client.host if request.client else "-"
    logger.info(f"[REQUEST] {client} - {request.method} {request.url.path}")

    response = await call_next(request)

    process_time = time.time() - start_time
    logger.info(f"[RESPONSE] {request.url.path} completed in {process_time:.3f}s with status {response.status_code}")
    return response


# Request models
class AnalyzeChunkRequest(CamelModel):
    transcript: str
    previous_summary: Optional[str] = Field(default=None, alias="previousSummary")


class TextAnalysisRequest(CamelModel):
    text: str


class CreateSessionRequest(CamelModel):
    owner_id: Optional[str] = Field(default=None, alias="ownerId")
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")


class SessionTextRequest(CamelModel):
    text: str
    is_final: bool = Field(default=True, alias="isFinal")


class ViewportEventRequest(CamelModel):
    type: Literal["pointer_down", "pointer_move", "pointer_up", "pointer_leave", "wheel"]
    x: float = 0.0
    y: float = 0.0
    delta_y: float = Field(default=0.0, alias="deltaY")


class SaveTranscriptRequest(CamelModel):
    user_id: str = Field(alias="userId")
    segments: List[TranscriptSegment] = Field(default_factory=list)
    title: Optional[str] = None


class UpdateTranscriptRequest(CamelModel):
    segments: List[TranscriptSegment] = Field(default_factory=list)
    title: Optional[str] = None


def _get_session(session_id: str) -> CaptureSession:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return session


def _require_running(session: CaptureSession) -> None:
    if session.is_stopped:
        raise HTTPException(status_code=409, detail=f"Session {session.session_id} is stopped")


def _release_stopped_sessions() -> None:
    """Keep only the most recent STOPPED_SESSION_RETENTION stopped sessions"""
    stopped = [session_id for session_id, session in sessions.items() if session.is_stopped]
    excess = len(stopped) - settings.STOPPED_SESSION_RETENTION
    for session_id in stopped[:max(excess, 0)]:
        del sessions[session_id]
    if excess > 0:
        logger.info(f"Released {excess} stopped sessions, {len(sessions)} remain")


# ==================== ANALYSIS ====================

@app.post("/api/analyze-chunk")
async def analyze_chunk(request: AnalyzeChunkRequest):
    """
    Classify one transcript chunk: {summary, isOnTrack, topic}.
    Falls back to the local heuristic when the classifier is unavailable.
    """
    try:
        if not request.transcript.strip():
            raise HTTPException(status_code=400, detail="Invalid transcript")

        result = await classifier.classify(request.transcript, request.previous_summary)
        return result.to_wire()

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error analyzing chunk: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Analysis failed")


@app.post("/api/sentiment")
async def sentiment(request: TextAnalysisRequest):
    if not request.text.strip():
        raise HTTPException(status_code=400, detail="Text cannot be empty")
    analysis = await analyze_sentiment(request.text)
    return analysis.to_wire()


@app.post("/api/brain-wave")
async def brain_wave(request: TextAnalysisRequest):
    if not request.text.strip():
        raise HTTPException(status_code=400, detail="Text cannot be empty")
    classification = await classify_conversation(request.text)
    return classification.to_wire()


# ==================== CAPTURE SESSIONS ====================

@app.post("/sessions")
async def create_session(request: CreateSessionRequest):
    """
    Start a capture session fed by POST /sessions/{id}/text.
    With conversationId, the persisted conversation is replayed first.
    """
    try:
        session = CaptureSession(
            classifier,
            PushCaptureSource(),
            store=conversation_store,
            owner_id=request.owner_id,
            emitter=SSEEventEmitter(sse_event_queue),
        )

        if request.conversation_id:
            if await conversation_store.get_conversation(request.conversation_id) is None:
                raise HTTPException(status_code=404, detail=f"Conversation {request.conversation_id} not found")
            await session.load(request.conversation_id)

        session.start()
        sessions[session.session_id] = session
        _release_stopped_sessions()
        logger.info(f"Started session {session.session_id} (owner: {request.owner_id})")

        return {
            "sessionId": session.session_id,
            "conversationId": session.conversation_id,
            "nodeCount": len(session.graph),
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating session: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error creating session: {str(e)}")


@app.post("/sessions/{session_id}/text")
async def send_session_text(session_id: str, request: SessionTextRequest):
    """Deliver one transcription result (final text is buffered, interim text only displayed)"""
    session = _get_session(session_id)
    _require_running(session)
    if request.is_final and not request.text.strip():
        raise HTTPException(status_code=400, detail="Text cannot be empty")

    text_preview = request.text[:100] + "..." if len(request.text) > 100 else request.text
    logger.info(f"[RECEIVED] {'final' if request.is_final else 'interim'} text for {session_id}: '{text_preview}'")

    session.capture_source.push(request.text, is_final=request.is_final)
    return {
        "status": "success",
        "bufferLength": len(session.buffer.get_buffer()),
        "liveText": session.buffer.live_text,
    }


@app.post("/sessions/{session_id}/flush")
async def flush_session(session_id: str):
    """Run one chunk tick now instead of waiting for the timer"""
    session = _get_session(session_id)
    _require_running(session)
    try:
        node = await session.on_tick()
        return {
            "node": node.to_wire() if node else None,
            "nodeCount": len(session.graph),
        }
    except Exception as e:
        logger.error(f"Error flushing session {session_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error flushing session: {str(e)}")


@app.post("/sessions/{session_id}/stop")
async def stop_session(session_id: str):
    session = _get_session(session_id)
    title = await session.stop()
    await session.wait_for_pending_writes(timeout=settings.PERSISTENCE_DRAIN_SECONDS)
    _release_stopped_sessions()
    return {
        "title": title,
        "nodeCount": len(session.graph),
        "conversationId": session.conversation_id,
    }


@app.get("/sessions/{session_id}/graph")
async def get_session_graph(session_id: str):
    return _get_session(session_id).snapshot()


@app.post("/sessions/{session_id}/viewport")
async def update_viewport(session_id: str, event: ViewportEventRequest):
    viewport = _get_session(session_id).viewport
    if event.type == "pointer_down":
        viewport.pointer_down(event.x, event.y)
    elif event.type == "pointer_move":
        viewport.pointer_move(event.x, event.y)
    elif event.type == "pointer_up":
        viewport.pointer_up()
    elif event.type == "pointer_leave":
        viewport.pointer_leave()
    else:
        viewport.wheel(event.delta_y, event.x, event.y)
    return viewport.to_dict()


# ==================== CONVERSATIONS ====================

@app.get("/conversations")
async def list_conversations(
    owner_id: str = Query(..., alias="ownerId"),
    limit: int = Query(settings.CONVERSATION_LIST_LIMIT, ge=1),
):
    conversations = await conversation_store.list_conversations(owner_id, limit=limit)
    return [conversation.to_wire() for conversation in conversations]


async def _get_conversation_records(conversation_id: str):
    if await conversation_store.get_conversation(conversation_id) is None:
        raise HTTPException(status_code=404, detail=f"Conversation {conversation_id} not found")
    return await conversation_store.get_conversation_nodes(conversation_id)


@app.get("/conversations/{conversation_id}/nodes")
async def get_conversation_nodes(conversation_id: str):
    records = await _get_conversation_records(conversation_id)
    return [record.to_wire() for record in records]


@app.get("/conversations/{conversation_id}/layout")
async def get_conversation_layout(conversation_id: str):
    """Layout of a persisted conversation, identical to the live one"""
    records = await _get_conversation_records(conversation_id)
    graph = ConversationGraph.from_records(records, conversation_id=conversation_id)
    return compute_layout(graph.nodes).to_dict()


# ==================== TRANSCRIPTS ====================

@app.post("/transcripts")
async def save_transcript(request: SaveTranscriptRequest):
    transcript_id = await transcript_store.save_transcript(request.user_id, request.segments, title=request.title)
    return {"id": transcript_id}


@app.put("/transcripts/{transcript_id}")
async def update_transcript(transcript_id: str, request: UpdateTranscriptRequest):
    try:
        await transcript_store.update_transcript(transcript_id, request.segments, title=request.title)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"status": "success", "id": transcript_id}


@app.delete("/transcripts/{transcript_id}")
async def delete_transcript(transcript_id: str):
    await transcript_store.delete_transcript(transcript_id)
    return {"status": "success", "id": transcript_id}


@app.get("/transcripts")
async def list_transcripts(
    user_id: str = Query(..., alias="userId"),
    limit: int = Query(settings.TRANSCRIPT_LIST_LIMIT, ge=1),
):
    transcripts = await transcript_store.get_user_transcripts(user_id, limit=limit)
    return [transcript.to_wire() for transcript in transcripts]


@app.get("/transcripts/{transcript_id}")
async def get_transcript(transcript_id: str):
    record = await transcript_store.get_transcript(transcript_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Transcript {transcript_id} not found")
    return record.to_wire()


@app.post("/transcripts/{transcript_id}/analyze")
async def analyze_transcript(transcript_id: str):
    """Tag every segment with its sentiment and store the result"""
    try:
        record = await transcript_store.get_transcript(transcript_id)
        if record is None:
            raise HTTPException(status_code=404, detail=f"Transcript {transcript_id} not found")

        tagged = await tag_segment_sentiments(record.segments)
        await transcript_store.update_transcript(transcript_id, tagged, title=record.title)
        return {"id": transcript_id, "segments": [segment.to_wire() for segment in tagged]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error analyzing transcript {transcript_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error analyzing transcript: {str(e)}")


# ==================== STATUS ====================

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    active = sum(1 for session in sessions.values() if not session.is_stopped)
    return {"status": "healthy", "sessions": len(sessions), "activeSessions": active}


@app.get("/stream-progress")
async def stream_progress():
    """
    SSE endpoint for streaming session progress (live text, appended nodes, stops).

    Returns:
        StreamingResponse: Server-Sent Events stream
    """

    async def event_generator():
        while True:
            event = await sse_event_queue.get()
            yield f"event: {event['event']}\ndata: {json.dumps(event['data'])}\n\n"

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no"  # Disable nginx buffering
        }
    )


if __name__ == "__main__":
    import sys

    import uvicorn

    # Allow port to be specified via environment variable or command line
    port = settings.CONVOMAP_PORT
    if len(sys.argv) > 1:
        try:
            port = int(sys.argv[1])
        except ValueError:
            pass

    uvicorn.run(app, host="127.0.0.1", port=port)
