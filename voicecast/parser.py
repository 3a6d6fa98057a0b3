"""Parse an "@Voice text" script into ordered utterance records."""

from voicecast.constants import SCRIPT_DELIMITER, VOICE_IDS
from voicecast.errors import ValidationError
from voicecast.models import UtteranceRecord
from voicecast.voices import normalize_voice_id, is_known_voice


def _split_cues(text: str) -> list[str]:
    """Split on the cue delimiter, trim, and drop empty cues."""
    cues = []
    for raw in text.split(SCRIPT_DELIMITER):
        cue = raw.strip()
        if cue:
            cues.append(cue)
    return cues


def _split_tag(cue: str) -> tuple[str, str]:
    """Separate the leading voice tag from the utterance text."""
    parts = cue.split(None, 1)
    tag = parts[0]
    body = parts[1].strip() if len(parts) > 1 else ""
    return tag, body


def parse_script(text: str, voice_ids=VOICE_IDS) -> list[UtteranceRecord]:
    """Parse script text into UtteranceRecords.

    Every cue starts with "@" followed by a voice tag; the rest of the cue
    is spoken by that voice. Indexes count emitted records, so empty cues
    never leave gaps. One unknown tag rejects the whole document.
    """
    records = []
    for cue in _split_cues(text):
        tag, body = _split_tag(cue)
        voice_id = normalize_voice_id(tag)

        if not is_known_voice(voice_id, voice_ids):
            raise ValidationError(f"Wrong Voice ID: {voice_id}")
        if not body:
            raise ValidationError(f"No text for voice {voice_id} in cue {len(records)}")

        records.append(UtteranceRecord(index=len(records), voice_id=voice_id, text=body))

    return records
