"""
Playback voice catalogue and selection.

Voices are scored once at startup and again whenever the platform voice
list changes. The highest score wins; ties keep catalogue order.
"""

from __future__ import annotations

from dataclasses import dataclass

from constants import (
    SPEECH_LANGUAGE_DEFAULT,
    VOICE_GENDERED_HINTS,
    VOICE_NATURAL_HINTS,
    VOICE_SCORE_GENDERED,
    VOICE_SCORE_LOCALE,
    VOICE_SCORE_NATURAL,
    VOICE_SCORE_VENDOR,
    VOICE_VENDOR_HINTS,
)


@dataclass(frozen=True)
class VoiceInfo:
    """One entry of the platform voice list."""
    voice_id: str
    name: str
    language: str = ""
    gender: str = ""


def _matches_locale(voice_language: str, language: str) -> bool:
    primary = language.split("-")[0].lower()
    return voice_language.lower().replace("_", "-").startswith(primary)


def score_voice(voice: VoiceInfo, language: str = SPEECH_LANGUAGE_DEFAULT) -> int:
    name = voice.name.lower()
    descriptor = f"{name} {voice.gender.lower()}"

    score = 0
    if _matches_locale(voice.language, language):
        score += VOICE_SCORE_LOCALE
    if any(hint in name for hint in VOICE_NATURAL_HINTS):
        score += VOICE_SCORE_NATURAL
    if any(hint in descriptor for hint in VOICE_GENDERED_HINTS):
        score += VOICE_SCORE_GENDERED
    for vendor in VOICE_VENDOR_HINTS:
        if vendor in name:
            score += VOICE_SCORE_VENDOR
    return score


def select_voice(
    voices: list[VoiceInfo],
    language: str = SPEECH_LANGUAGE_DEFAULT,
) -> VoiceInfo | None:
    """Highest-scoring voice, first one on ties; None for an empty list."""
    best: VoiceInfo | None = None
    best_score = -1
    for voice in voices:
        score = score_voice(voice, language)
        if score > best_score:
            best, best_score = voice, score
    return best
