import logging
import math
import random

import openai

logger = logging.getLogger(__name__)

DUMMY_TRANSCRIPTS = [
    "Caller reports strong gas odor in basement at 1422 Pine Street, pilot light out. No visible flame.",
    "Power outage affecting entire neighborhood on Oak Avenue since 2 PM. Multiple customers calling.",
    "Water main break near intersection of 5th and Main. Water pressure very low throughout area.",
    "Billing dispute for account ending in 4567. Customer says meter reading is incorrect.",
    "Gas leak reported outside apartment building on Elm Street. Residents evacuated to safe distance.",
]

FALLBACK_TRANSCRIPT = ("Customer reports utility service issue. Unable to transcribe audio automatically. "
                       "Please review and edit this description as needed.")

# Recordings under this size are most likely silence
MIN_SPOKEN_KB = 5


def _segment_dict(segment):
    if isinstance(segment, dict):
        return segment
    return segment.model_dump()


def _confidence(segments):
    if not segments:
        return None
    avg_logprob = sum(s.get("avg_logprob") or 0 for s in segments) / len(segments)
    return round(100 * math.exp(avg_logprob))


def _is_quota_error(error):
    message = str(error).lower()
    return (
        isinstance(error, openai.RateLimitError)
        or getattr(error, "status_code", None) == 429
        or "quota" in message
    )


class Transcriber:
    """Speech-to-text for voice incident reports."""

    def __init__(self, client=None, model="whisper-1", enabled=True):
        self.client = client
        self.model = model
        self.enabled = enabled

    @classmethod
    def from_config(cls, settings):
        api_key = settings.get("OPENAI_API_KEY")
        client = None
        if api_key:
            client = openai.OpenAI(api_key=api_key, timeout=settings.get("OPENAI_TIMEOUT") or 20.0)
        return cls(
            client=client,
            model=settings.get("TRANSCRIBE_MODEL") or "whisper-1",
            enabled=settings.get("USE_TRANSCRIPTION", True),
        )

    @property
    def mode(self):
        return "openai" if self.enabled and self.client is not None else "dummy"

    def transcribe(self, filename, data, mimetype):
        if self.mode == "dummy":
            return {
                "transcript": random.choice(DUMMY_TRANSCRIPTS),
                "confidence": None,
                "segments": [],
                "mode": "dummy",
            }

        try:
            transcription = self.client.audio.transcriptions.create(
                file=(filename, data, mimetype),
                model=self.model,
                response_format="verbose_json",
                language="en",
            )
        except Exception as e:
            return self._degraded(e, len(data))

        segments = [_segment_dict(s) for s in (getattr(transcription, "segments", None) or [])]
        return {
            "transcript": transcription.text,
            "confidence": _confidence(segments),
            "segments": segments,
            "mode": "openai",
        }

    def _degraded(self, error, size_bytes):
        if _is_quota_error(error):
            logger.warning("OpenAI quota exceeded, returning audio-aware fallback")
            size_kb = size_bytes / 1024
            if size_kb > MIN_SPOKEN_KB:
                transcript = (f"[Audio file recorded: {size_kb:.1f}KB] Your voice recording was captured "
                              "successfully, but the transcription service quota is exceeded. Please type "
                              "your description manually.")
            else:
                transcript = (f"Small audio file detected ({size_kb:.1f}KB). Please speak louder and closer "
                              "to the microphone, or type your description manually.")
            return {
                "transcript": transcript,
                "confidence": None,
                "segments": [],
                "mode": "quota-exceeded",
                "notice": "Transcription quota exceeded - please type the description manually",
            }

        logger.warning("Transcription failed, returning fallback: %s", error)
        return {
            "transcript": FALLBACK_TRANSCRIPT,
            "confidence": None,
            "segments": [],
            "mode": "error-fallback",
            "notice": "Transcription service temporarily unavailable - please edit the description",
        }
