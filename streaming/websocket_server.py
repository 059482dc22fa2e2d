"""
WebSocket handler for /ws/recite.

- Binary frames are recorded audio chunks; each is transcribed server-side.
- {"type": "transcript", "text": ...} carries text already transcribed on the device.
- {"type": "capture_error", "kind": ..., "message": ...} reports a microphone failure.
- {"type": "reset"} clears the session; "end" / "stop" / "final" finishes it.

Every transcript update answers with a partial_result (accumulated transcript,
smoothed word feedback, extras, status, latency_ms). On finish the full session
summary is sent as final_result.
"""

import asyncio
import json
import logging
from typing import Any, Callable, List, Optional

from fastapi import WebSocket, WebSocketDisconnect

from core.types import EngineConfig
from streaming.live_session import LiveRecitationSession

logger = logging.getLogger(__name__)

FINISH_MESSAGES = ("end", "stop", "final")


def prune_finished(tasks: List[asyncio.Task]) -> None:
    """Drop completed tasks in place so a long session does not keep every result around."""
    tasks[:] = [t for t in tasks if not t.done()]


def build_ws_recite_handler(
    get_transcriber: Callable[[], Any],
    get_engine_config: Optional[Callable[[], EngineConfig]] = None,
    smoothing_history: int = 2,
    receive_timeout: float = 300.0,
) -> Callable:
    """
    Build the async WebSocket handler for /ws/recite.

    Args:
        get_transcriber: Callable returning the server transcriber (looked up per connection).
        get_engine_config: Callable returning the engine tunables.
        smoothing_history: Windows kept by the word feedback smoother.
        receive_timeout: Seconds of silence before the session is finished.

    Returns:
        Async function (websocket: WebSocket) -> None for use with FastAPI.
    """

    async def handle_ws_recite(websocket: WebSocket) -> None:
        params = websocket.query_params
        expected_text = (params.get("expected_text") or "").strip()
        if not expected_text:
            await websocket.close(code=1008, reason="Missing expected_text")
            return

        await websocket.accept()
        session = LiveRecitationSession(
            expected_text,
            transcriber=get_transcriber(),
            ayah_id=params.get("ayah_id"),
            config=get_engine_config() if get_engine_config else None,
            smoothing_history=smoothing_history,
        )
        session.start()
        pending_tasks: List[asyncio.Task] = []
        disconnected = False

        async def send(payload: dict) -> None:
            try:
                await websocket.send_json(payload)
            except (WebSocketDisconnect, RuntimeError):
                pass

        async def run_chunk(audio: bytes) -> None:
            await send(await session.process_chunk(audio))

        async def run_transcript(text: str) -> None:
            await send(await session.process_transcript(text))

        async def handle_text(msg: str) -> bool:
            """Returns True when the client asked to finish."""
            if msg.strip().lower() in FINISH_MESSAGES:
                return True
            try:
                data = json.loads(msg)
            except ValueError:
                return False
            if not isinstance(data, dict):
                return False
            kind = data.get("type")
            if kind == "transcript":
                prune_finished(pending_tasks)
                pending_tasks.append(asyncio.create_task(run_transcript(str(data.get("text") or ""))))
            elif kind == "capture_error":
                error = session.report_capture_error(data.get("kind", ""), data.get("message", ""))
                await send({"type": "error", "status": session.status, "kind": error["kind"], "message": error["error"]})
            elif kind == "reset":
                if pending_tasks:
                    await asyncio.gather(*pending_tasks, return_exceptions=True)
                    pending_tasks.clear()
                session.reset()
                session.start()
            elif kind == "end":
                return True
            return False

        try:
            while True:
                try:
                    data = await asyncio.wait_for(websocket.receive(), timeout=receive_timeout)
                except asyncio.TimeoutError:
                    break
                if data.get("type") == "websocket.disconnect":
                    disconnected = True
                    break
                if data.get("type") != "websocket.receive":
                    continue
                if data.get("bytes") is not None:
                    prune_finished(pending_tasks)
                    pending_tasks.append(asyncio.create_task(run_chunk(data["bytes"])))
                elif data.get("text") is not None:
                    if await handle_text(data["text"]):
                        break
        except WebSocketDisconnect:
            disconnected = True
        except Exception as e:
            logger.exception("Live recitation session failed")
            await send({"type": "error", "kind": "internal_error", "message": str(e)})

        # Chunks are processed in arrival order; wait for in-flight ones before the summary
        if pending_tasks:
            await asyncio.gather(*pending_tasks, return_exceptions=True)

        if not disconnected:
            await send(session.final_result())
            try:
                await websocket.close()
            except RuntimeError:
                pass

    return handle_ws_recite
