"""Voice identifier normalization and lookup."""

from voicecast.constants import VOICE_IDS


def normalize_voice_id(token: str) -> str:
    """Capitalize the first letter of a script tag ("salli" -> "Salli").

    Only the first character changes; Polly voice IDs are case-sensitive,
    so "SALLI" stays "SALLI" and is rejected later.
    """
    return token[:1].upper() + token[1:]


def is_known_voice(voice_id: str, voice_ids=VOICE_IDS) -> bool:
    return voice_id in voice_ids


def list_voices(filter_str: str | None = None, voice_ids=VOICE_IDS) -> list[str]:
    """Return the valid voice IDs, optionally filtered by case-insensitive substring."""
    if not filter_str:
        return list(voice_ids)
    needle = filter_str.lower()
    return [v for v in voice_ids if needle in v.lower()]
