"""
Feedback smoothing for live word feedback.

Keeps the last few word_feedback states. A word is only shown as "incorrect"
if it was already incorrect in the previous window, which stops words from
flickering between correct and incorrect while the transcript grows chunk by
chunk.
"""

from collections import deque
from typing import Any, Dict, List


# Statuses we require to appear in 2 consecutive windows before showing
CONFIRM_BEFORE_SHOW = ("incorrect",)


class WordFeedbackSmoother:
    """
    Maintains the last word_feedback lists; smooths so "incorrect" only shows
    after 2 consecutive windows with that status.
    """

    def __init__(self, history_size: int = 2):
        self._history: deque = deque(maxlen=max(1, history_size))

    def update(self, word_feedback: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Take the latest word feedback from alignment; return a smoothed copy.

        For each word flagged "incorrect", keep that status only if the same
        position was already incorrect last time; otherwise show the previous
        status (or "correct" if there is none).

        Args:
            word_feedback: Entries from get_word_feedback ({"expected", "detected", "status", "similarity"}).

        Returns:
            New list with the same entries; status may be smoothed.
        """
        if not word_feedback:
            self._history.append([])
            return []

        prev_list = self._history[-1] if self._history else []
        self._history.append(word_feedback)

        smoothed: List[Dict[str, Any]] = []
        for i, item in enumerate(word_feedback):
            status = item.get("status", "missing")
            prev_status = prev_list[i].get("status") if i < len(prev_list) else None

            if status in CONFIRM_BEFORE_SHOW and prev_status not in CONFIRM_BEFORE_SHOW:
                status = prev_status or "correct"

            smoothed.append({**item, "status": status})
        return smoothed

    def reset(self) -> None:
        """Clear history (e.g. on new verse or reconnect)."""
        self._history.clear()
