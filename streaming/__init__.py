"""
Live recitation layer.

- feedback_smoothing: Word feedback smoother ("incorrect" after 2 consecutive windows).
- live_session: Per-recitation state (accumulated transcript, status, single-flight chunks).
- websocket_server: WebSocket handler for /ws/recite (import separately to avoid pulling FastAPI).
"""

from streaming.feedback_smoothing import WordFeedbackSmoother
from streaming.live_session import LiveRecitationSession

__all__ = [
    "LiveRecitationSession",
    "WordFeedbackSmoother",
]
