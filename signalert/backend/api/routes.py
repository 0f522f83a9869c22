"""
FastAPI routes for the sign alert API.
WebSocket for real-time detection sessions and REST for signs and history.
"""
import asyncio
import logging
from typing import Dict, List

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from signalert.backend.api.schemas import (
    HistoryEntry,
    HistoryStats,
    SignCreate,
    SignDetail,
    SignSummary,
    SignUpdate,
)
from signalert.backend.core import config
from signalert.backend.core.errors import (
    InvalidSignError,
    NoHandsRecordedError,
    SessionStartError,
    SignNotFoundError,
)
from signalert.backend.core.history import DetectionHistory
from signalert.backend.core.session_manager import DetectionSession, SessionManager
from signalert.backend.core.sign_library import SignLibrary
from signalert.backend.core.sign_recorder import SignRecorder
from signalert.backend.core.types import DetectionResult, HandObservation, MatchResult, SessionState

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(title="Sign Alert API")

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global instances
session_manager = SessionManager()
sign_library = SignLibrary(config.SIGNS_PATH)
history = DetectionHistory(config.HISTORY_PATH)
hand_capture = None


@app.on_event("startup")
async def startup_event():
    """Initialize the server-side hand detector if its stack is available."""
    global hand_capture

    try:
        from signalert.backend.detection.hand_capture import HandCapture
        hand_capture = HandCapture()
        logger.info("Hand capture initialized")
    except Exception as e:
        hand_capture = None
        logger.warning("Server-side hand capture unavailable, clients must send landmarks: %s", e)


@app.on_event("shutdown")
async def shutdown_event():
    session_manager.close_all()
    if hand_capture is not None:
        hand_capture.close()


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "hand_capture": hand_capture is not None,
        "signs": len(sign_library),
        "sessions": len(session_manager.sessions)
    }


@app.get("/api/signs", response_model=List[SignSummary])
async def list_signs():
    return [SignSummary.from_sign(sign) for sign in sign_library.list_signs()]


@app.get("/api/signs/{sign_id}", response_model=SignDetail)
async def get_sign(sign_id: str):
    try:
        return SignDetail.from_sign(sign_library.get(sign_id))
    except SignNotFoundError:
        raise HTTPException(status_code=404, detail="Sign not found")


@app.post("/api/signs", response_model=SignSummary, status_code=201)
async def create_sign(request: SignCreate):
    """Store a new reference sign."""
    try:
        sign = sign_library.add(
            name=request.name,
            description=request.description,
            landmarks=request.landmarks.to_library(),
            hand_type=request.hand_type,
            voice_alert=request.voice_alert,
        )
    except InvalidSignError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return SignSummary.from_sign(sign)


@app.patch("/api/signs/{sign_id}", response_model=SignSummary)
async def update_sign(sign_id: str, request: SignUpdate):
    try:
        sign = sign_library.update(
            sign_id,
            name=request.name,
            description=request.description,
            voice_alert=request.voice_alert,
        )
    except SignNotFoundError:
        raise HTTPException(status_code=404, detail="Sign not found")
    except InvalidSignError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return SignSummary.from_sign(sign)


@app.delete("/api/signs/{sign_id}")
async def delete_sign(sign_id: str):
    try:
        sign_library.delete(sign_id)
    except SignNotFoundError:
        raise HTTPException(status_code=404, detail="Sign not found")
    return {"status": "deleted"}


@app.get("/api/history", response_model=List[HistoryEntry])
async def get_history():
    return [
        HistoryEntry(
            id=entry["id"],
            sign_name=entry["signName"],
            sign_description=entry["signDescription"],
            confidence=entry["confidence"],
            timestamp=entry["timestamp"],
            voice_alert=entry.get("voiceAlert") or "",
        )
        for entry in history.entries
    ]


@app.delete("/api/history")
async def clear_history():
    history.clear()
    return {"status": "cleared"}


@app.get("/api/history/stats", response_model=HistoryStats)
async def get_history_stats():
    stats = history.stats()
    most_used = history.most_used_today()
    return HistoryStats(
        total=stats["total"],
        today=stats["today"],
        this_week=stats["thisWeek"],
        avg_confidence=stats["avgConfidence"],
        most_used_today=most_used[0] if most_used else None,
        most_used_today_count=most_used[1] if most_used else 0,
    )


def parse_hands(payload) -> List[HandObservation]:
    """Build observations from a client payload, skipping malformed hands."""
    observations = []
    for item in payload or []:
        try:
            observations.append(HandObservation.from_dict(item))
        except (AttributeError, TypeError, ValueError) as e:
            logger.debug("Discarding malformed hand: %s", e)
    return observations


def create_ws_session(outbox: List[Dict]) -> DetectionSession:
    """Create a detection session whose events are queued for the client."""

    def on_detection(result: DetectionResult):
        history.add(result)
        outbox.append({"type": "detection", **result.to_dict()})

    def on_countdown(seconds: int):
        outbox.append({"type": "countdown", "seconds": seconds})

    def on_state_change(state: SessionState, reason: str):
        outbox.append({"type": "state", "state": state.value, "reason": reason})

    def on_match(result: MatchResult):
        outbox.append({
            "type": "match",
            "detected": result.detected,
            "confidence": result.confidence,
            "sign_name": result.sign_name,
        })

    return session_manager.create_session(
        countdown_duration=config.COUNTDOWN_DURATION,
        timeout_ms=config.DETECTION_TIMEOUT_MS,
        cooldown_ms=config.DETECTION_COOLDOWN_MS,
        on_detection=on_detection,
        on_countdown=on_countdown,
        on_state_change=on_state_change,
        on_match=on_match,
    )


def handle_observations(session: DetectionSession, recorder: SignRecorder, observations: List[HandObservation]):
    recorder.add_frame(observations)
    session.on_frame(observations)


def handle_message(data: Dict, session: DetectionSession, recorder: SignRecorder, outbox: List[Dict]):
    """
    Apply one client message to the session.

    Messages:
    - {"type": "start", "detector_loaded": true}
    - {"type": "hands", "hands": [{"landmarks": [[x, y, z], ...], "handedness": "Left", "confidence": 0.9}]}
    - {"type": "frame", "frame": "base64..."}
    - {"type": "stop"} / {"type": "dismiss"} / {"type": "status"}
    - {"type": "record_start"}
    - {"type": "record_stop", "name": "...", "description": "...", "voice_alert": "..."}
    """
    message_type = data.get("type", "hands")

    if message_type == "start":
        try:
            started = session.start(sign_library.snapshot(), detector_loaded=bool(data.get("detector_loaded", True)))
        except SessionStartError as e:
            outbox.append({"type": "error", "message": str(e)})
            return
        if not started:
            outbox.append({"type": "status", **session.get_status()})

    elif message_type == "hands":
        handle_observations(session, recorder, parse_hands(data.get("hands")))

    elif message_type == "frame":
        if hand_capture is None:
            outbox.append({"type": "error", "message": "Server-side hand capture is not available"})
            return
        frame_base64 = data.get("frame")
        if not frame_base64:
            return
        try:
            from signalert.backend.detection.hand_capture import decode_frame
            frame = decode_frame(frame_base64)
            observations = hand_capture.extract_observations(frame)
        except Exception as e:
            logger.warning("Frame decode error: %s", e)
            return
        handle_observations(session, recorder, observations)

    elif message_type == "stop":
        session.stop()

    elif message_type == "dismiss":
        session.dismiss()
        outbox.append({"type": "status", **session.get_status()})

    elif message_type == "status":
        outbox.append({"type": "status", **session.get_status()})

    elif message_type == "record_start":
        recorder.start()
        outbox.append({"type": "recording", "recording": True})

    elif message_type == "record_stop":
        try:
            recorded = recorder.finish()
            sign = sign_library.add(
                name=data.get("name", ""),
                description=data.get("description", ""),
                landmarks=recorded.landmarks,
                hand_type=recorded.hand_type,
                voice_alert=data.get("voice_alert", ""),
            )
        except (NoHandsRecordedError, InvalidSignError) as e:
            outbox.append({"type": "error", "message": str(e)})
            return
        outbox.append({"type": "recorded", "sign": SignSummary.from_sign(sign).model_dump(mode="json")})

    else:
        outbox.append({"type": "error", "message": f"Unknown message type: {message_type}"})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for real-time sign detection.

    The session is driven from this loop: each message is applied, and when
    the client is quiet the session is updated every tick so countdowns and
    timeouts still fire. Queued events are sent after every step.
    """
    await websocket.accept()
    outbox: List[Dict] = []
    session = create_ws_session(outbox)
    recorder = SignRecorder()
    logger.info("WebSocket connected, session %s", session.id)

    try:
        while True:
            try:
                data = await asyncio.wait_for(websocket.receive_json(), timeout=config.WS_TICK_INTERVAL)
            except asyncio.TimeoutError:
                data = None

            if data is None:
                session.update()
            elif isinstance(data, dict):
                handle_message(data, session, recorder, outbox)
            else:
                outbox.append({"type": "error", "message": "Messages must be JSON objects"})

            while outbox:
                await websocket.send_json(outbox.pop(0))

    except WebSocketDisconnect:
        logger.info("WebSocket disconnected, session %s", session.id)
    except Exception:
        logger.exception("WebSocket error in session %s", session.id)
        try:
            await websocket.send_json({"type": "error", "message": "Server error occurred"})
        except Exception as send_error:
            logger.debug("Failed to send error message: %s", send_error)
    finally:
        session_manager.remove_session(session.id)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
