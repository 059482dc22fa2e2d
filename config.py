"""
Service and engine configuration via environment variables.
Load with python-dotenv; no hardcoded secrets.
"""
import os

from dotenv import load_dotenv

from core.types import EngineConfig

# Load .env if present (in production the env is set by the orchestrator)
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.lower() in ("1", "true", "yes")


# ----- Server -----
PORT = int(os.environ.get("PORT", "8001"))
HOST = os.environ.get("HOST", "0.0.0.0")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# ----- Transcription -----
# openai: hosted Whisper-compatible API | local: openai-whisper on this machine
TRANSCRIBE_BACKEND = os.environ.get("TRANSCRIBE_BACKEND", "openai").lower()
OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "").strip()
OPENAI_BASE_URL = os.environ.get("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/")
# whisper-1 for the hosted API; tiny/base/small/... for the local backend
WHISPER_MODEL = os.environ.get("WHISPER_MODEL", "").strip() or (
    "whisper-1" if TRANSCRIBE_BACKEND == "openai" else "base"
)
TRANSCRIBE_TIMEOUT_SECONDS = float(os.environ.get("TRANSCRIBE_TIMEOUT_SECONDS", "30"))
MAX_AUDIO_BYTES = int(os.environ.get("MAX_AUDIO_BYTES", str(10 * 1024 * 1024)))

# ----- Live sessions (/ws/recite) -----
LIVE_SMOOTHING_HISTORY = int(os.environ.get("LIVE_SMOOTHING_HISTORY", "2"))
LIVE_RECEIVE_TIMEOUT_SECONDS = float(os.environ.get("LIVE_RECEIVE_TIMEOUT_SECONDS", "300"))

# ----- CORS (production: set to specific origins) -----
CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")


def get_cors_origins() -> list:
    """Return list of allowed CORS origins from env."""
    if CORS_ORIGINS == "*":
        return ["*"]
    return [o.strip() for o in CORS_ORIGINS.split(",") if o.strip()]


def load_engine_config() -> EngineConfig:
    """
    Build an EngineConfig from RECITATION_* environment variables.
    Unset variables keep the engine defaults.
    """
    d = EngineConfig()
    env = os.environ
    return EngineConfig(
        match_similarity_threshold=float(env.get("RECITATION_MATCH_THRESHOLD", d.match_similarity_threshold)),
        missing_penalty_weight=float(env.get("RECITATION_MISSING_PENALTY", d.missing_penalty_weight)),
        substitution_penalty_weight=float(env.get("RECITATION_SUBSTITUTION_PENALTY", d.substitution_penalty_weight)),
        extra_penalty_weight=float(env.get("RECITATION_EXTRA_PENALTY", d.extra_penalty_weight)),
        harakat_penalty_weight=float(env.get("RECITATION_HARAKAT_PENALTY", d.harakat_penalty_weight)),
        minimum_rule_score_floor=int(env.get("RECITATION_RULE_SCORE_FLOOR", d.minimum_rule_score_floor)),
        reward_floor=int(env.get("RECITATION_REWARD_FLOOR", d.reward_floor)),
        reward_per_word_factor=float(env.get("RECITATION_REWARD_PER_WORD", d.reward_per_word_factor)),
        strict_harakat=_env_bool("RECITATION_STRICT_HARAKAT", d.strict_harakat),
        track_rule_scores=_env_bool("RECITATION_TRACK_RULE_SCORES", d.track_rule_scores),
    )
