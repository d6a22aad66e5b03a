"""
LabTerm FastAPI Backend Server

Provides REST endpoints for lab session lifecycle and a WebSocket endpoint
carrying keystrokes for the simulated terminal.
"""

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from .. import __version__
from ..config import get_settings
from ..logging_config import setup_logging, get_logger
from ..models import (
    ClientAction,
    KeyEvent,
    ResponseType,
    ServerMessage,
    SessionCreate,
    SessionSnapshot,
)
from .session import LabSession, get_session_manager

# Initialize logging
setup_logging()
logger = get_logger("server.app")

# WebSocket close code for an unknown session
WS_SESSION_NOT_FOUND = 4404


@asynccontextmanager
async def lifespan(app: FastAPI):
    manager = get_session_manager()
    await manager.start()
    yield
    await manager.stop()


# Create FastAPI app
app = FastAPI(
    title="LabTerm",
    description="Simulated cloud-lab terminal sessions for student exercises",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware for localhost access
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _require_session(session_id: str) -> LabSession:
    session = get_session_manager().get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


# ============================================================================
# Health check
# ============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__,
        "sessions": len(get_session_manager().sessions),
    }


# ============================================================================
# Session lifecycle
# ============================================================================

@app.post("/api/sessions", response_model=SessionSnapshot, status_code=201)
async def create_session(payload: SessionCreate):
    """Launch a lab session and start provisioning it."""
    manager = get_session_manager()
    try:
        session = manager.create_session(
            lab_id=payload.lab_id,
            duration_minutes=payload.duration_minutes,
            environment=payload.environment,
        )
    except RuntimeError as e:
        logger.warning(f"Session refused for lab {payload.lab_id}: {e}")
        raise HTTPException(status_code=429, detail=str(e))

    manager.start_provisioning(session)
    return session.snapshot()


@app.get("/api/sessions/{session_id}", response_model=SessionSnapshot)
async def get_session(session_id: str):
    """Current terminal and countdown state."""
    return _require_session(session_id).snapshot()


@app.post("/api/sessions/{session_id}/pause", response_model=SessionSnapshot)
async def pause_session(session_id: str):
    session = _require_session(session_id)
    get_session_manager().pause_session(session)
    return session.snapshot()


@app.post("/api/sessions/{session_id}/resume", response_model=SessionSnapshot)
async def resume_session(session_id: str):
    session = _require_session(session_id)
    get_session_manager().resume_session(session)
    return session.snapshot()


@app.post("/api/sessions/{session_id}/restart", response_model=SessionSnapshot)
async def restart_session(session_id: str):
    session = _require_session(session_id)
    get_session_manager().restart_session(session)
    return session.snapshot()


@app.post("/api/sessions/{session_id}/end", response_model=SessionSnapshot)
async def end_session(session_id: str):
    """End a session early. The transcript stays downloadable until cleanup."""
    session = _require_session(session_id)
    await get_session_manager().end_session(session)
    return session.snapshot()


@app.get("/api/sessions/{session_id}/transcript")
async def download_transcript(session_id: str):
    """Download the terminal scrollback as a text file."""
    terminal = _require_session(session_id).terminal
    return PlainTextResponse(
        content=terminal.transcript(),
        headers={
            "Content-Disposition": f'attachment; filename="{terminal.transcript_filename}"'
        },
    )


# ============================================================================
# WebSocket terminal endpoint
# ============================================================================

async def _send(websocket: WebSocket, message: ServerMessage) -> None:
    await websocket.send_json(message.model_dump(mode="json"))


async def _push_updates(websocket: WebSocket, session: LabSession) -> None:
    """Stream provisioning progress, then countdown ticks until the session ends."""
    manager = get_session_manager()
    async for step in manager.watch_provisioning(session):
        await _send(websocket, ServerMessage(type=ResponseType.PROVISIONING, step=step))
    await _send(websocket, ServerMessage(type=ResponseType.SNAPSHOT, snapshot=session.snapshot()))

    timer = session.timer
    while not session.ended.is_set():
        try:
            await asyncio.wait_for(session.ended.wait(), timeout=timer.tick_interval)
        except asyncio.TimeoutError:
            await _send(websocket, ServerMessage(
                type=ResponseType.TICK,
                remaining_seconds=timer.remaining_seconds,
                time_display=timer.display(),
            ))

    await _send(websocket, ServerMessage(
        type=ResponseType.SESSION_ENDED,
        content="Session ended",
        snapshot=session.snapshot(),
    ))


@app.websocket("/ws/{session_id}")
async def websocket_endpoint(websocket: WebSocket, session_id: str):
    """
    WebSocket endpoint for the terminal.

    Protocol:
    - Server sends: {"type": "provisioning", "step": {...}} until ready,
      then {"type": "snapshot", ...}, then {"type": "tick", ...} every second
    - Client sends: {"key": "Enter", "input": "ls -la"} or {"action": "pause"}
    - Server replies: {"type": "snapshot"|"transcript"|"session_ended"|"error", ...}
    """
    await websocket.accept()
    manager = get_session_manager()
    session = manager.get_session(session_id)
    if session is None:
        await websocket.close(code=WS_SESSION_NOT_FOUND, reason="Session not found")
        return

    logger.info(f"WebSocket connected: {session_id}")
    pusher = asyncio.create_task(_push_updates(websocket, session))

    try:
        while True:
            data = await websocket.receive_json()
            event = KeyEvent(**data)

            if event.action is not None:
                if event.action is ClientAction.COPY:
                    await _send(websocket, ServerMessage(
                        type=ResponseType.TRANSCRIPT,
                        content=session.terminal.transcript(),
                    ))
                    continue
                await manager.handle_action(session, event.action)
            else:
                session.apply(event)

            await _send(websocket, ServerMessage(
                type=ResponseType.SNAPSHOT,
                snapshot=session.snapshot(),
            ))

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected: {session_id}")

    except Exception as e:
        logger.error(f"WebSocket error: {e}")
        try:
            await _send(websocket, ServerMessage(type=ResponseType.ERROR, content=str(e)))
        except Exception:
            pass

    finally:
        pusher.cancel()
        try:
            await pusher
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.debug(f"Update stream closed for {session_id}: {e}")


# ============================================================================
# Main entry point
# ============================================================================

def main():
    """Run the server."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "labterm.server.app:app",
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.logging.level.lower(),
    )


if __name__ == "__main__":
    main()
