# pylint: disable=missing-module-docstring,missing-function-docstring
from types import SimpleNamespace

from adapters.playback.pyttsx3_engine import _language_of
from adapters.playback.voices import VoiceInfo, score_voice, select_voice


ESPEAK = VoiceInfo(voice_id="espeak-en", name="English (America)", language="en-us")
ZIRA = VoiceInfo(
    voice_id="zira",
    name="Microsoft Zira Desktop",
    language="en-US",
    gender="Female",
)
ARIA = VoiceInfo(
    voice_id="aria",
    name="Microsoft Aria Online (Natural)",
    language="en-US",
)
HANS = VoiceInfo(voice_id="hans", name="Microsoft Hans", language="de-DE")


def test_score_components():
    assert score_voice(ESPEAK, "en-US") == 3
    # locale + gendered + vendor
    assert score_voice(ZIRA, "en-US") == 6
    # locale + natural + gendered + vendor
    assert score_voice(ARIA, "en-US") == 9
    assert score_voice(HANS, "en-US") == 1


def test_best_voice_wins():
    assert select_voice([ESPEAK, HANS, ZIRA, ARIA], "en-US") == ARIA


def test_ties_keep_catalogue_order():
    other = VoiceInfo(voice_id="espeak-en-gb", name="English (Great Britain)", language="en-gb")
    assert select_voice([ESPEAK, other], "en-US") == ESPEAK


def test_locale_follows_language():
    assert select_voice([ZIRA, HANS], "de-DE") == HANS


def test_no_voices():
    assert select_voice([], "en-US") is None


def test_driver_language_bytes_are_decoded():
    assert _language_of(SimpleNamespace(languages=[b"\x05en-us"])) == "en-us"
    assert _language_of(SimpleNamespace(languages=["en_US"])) == "en_US"
    assert _language_of(SimpleNamespace(languages=[])) == ""
