"""
BEHAVIOR-AS-CONSTANTS
---------------------
Single source of truth for tunable behavior of the voice controller.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers elsewhere in the codebase.
"""

from __future__ import annotations

from typing import Final, Tuple

# =============================================================================
# Capture
# =============================================================================

SPEECH_LANGUAGE_DEFAULT: Final[str] = "en-US"

# Max seconds of speech in one listening turn before the recognizer finalizes
CAPTURE_PHRASE_LIMIT_S: Final[float] = 10.0

# Ambient-noise calibration before the first listening turn
CAPTURE_AMBIENT_CALIBRATION_S: Final[float] = 0.5

# How often a waiting listener re-checks whether its run was stopped
CAPTURE_LISTEN_POLL_S: Final[float] = 1.0

# Silence before a listening turn ends with reason "timeout"
CAPTURE_SILENCE_TIMEOUT_S: Final[float] = 8.0

# =============================================================================
# Playback
# =============================================================================

PLAYBACK_RATE_FACTOR: Final[float] = 1.03
PLAYBACK_BASE_RATE_WPM: Final[int] = 175

# Voice scoring weights
VOICE_SCORE_LOCALE: Final[int] = 3
VOICE_SCORE_NATURAL: Final[int] = 3
VOICE_SCORE_GENDERED: Final[int] = 2
VOICE_SCORE_VENDOR: Final[int] = 1

VOICE_NATURAL_HINTS: Final[Tuple[str, ...]] = ("neural", "natural", "online")
VOICE_GENDERED_HINTS: Final[Tuple[str, ...]] = (
    "female", "aria", "jenny", "zira", "samantha", "victoria",
)
VOICE_VENDOR_HINTS: Final[Tuple[str, ...]] = ("google", "microsoft")

# =============================================================================
# Resolution
# =============================================================================

RESOLVER_TIMEOUT_S: Final[float] = 8.0
RESOLVER_TEMPERATURE: Final[float] = 0.6
RESOLVER_MAX_TOKENS: Final[int] = 800

# Spoken replies are capped to this many sentences
MAX_REPLY_SENTENCES: Final[int] = 3

# Serialized recipe context is capped before it is embedded in a prompt
MAX_RECIPE_CONTEXT_CHARS: Final[int] = 6_000

# Reply line carrying the structured step delta
STEP_DELTA_MARKER: Final[str] = "@"

# =============================================================================
# Conversation Context
# =============================================================================

# A turn is one question plus its answer
MAX_CONTEXT_TURNS: Final[int] = 8
MAX_CONTEXT_CHARS: Final[int] = 6_000

# Truncation rule:
# While (turn_count > MAX_CONTEXT_TURNS) OR (total_chars > MAX_CONTEXT_CHARS):
#     drop oldest turn
