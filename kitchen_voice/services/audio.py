"""
Audio Service - speech recognition and text-to-speech bindings.

Concrete Listener and Speaker for the cooking session:
- SpeechRecognition (Google recognizer) for WAV transcription
- edge-tts for neural text-to-speech

All text is passed through make_speech_friendly() before synthesis.
Failures are logged and reported as None; a missed transcription or a
silent reply should never take the cooking session down.
"""

import asyncio
import io
import logging
from typing import AsyncIterator, Optional

import edge_tts
import speech_recognition as sr

from kitchen_voice.config import get_settings
from kitchen_voice.services.speech import Transcript, make_speech_friendly

logger = logging.getLogger(__name__)


# Available edge-tts voices for English (US, UK, Ireland)
VOICE_OPTIONS = {
    "en-US-AriaNeural": "Aria (US, Female)",
    "en-US-GuyNeural": "Guy (US, Male)",
    "en-US-JennyNeural": "Jenny (US, Female)",
    "en-GB-SoniaNeural": "Sonia (UK, Female)",
    "en-GB-RyanNeural": "Ryan (UK, Male)",
    "en-IE-EmilyNeural": "Emily (Ireland, Female)",
}


class AudioService:
    """Speech recognition and synthesis for cooking sessions."""

    def __init__(self, voice: Optional[str] = None, rate: Optional[str] = None):
        settings = get_settings()
        self.voice = voice or settings.voice_name
        self.rate = rate or settings.voice_rate
        self.recognizer = sr.Recognizer()

    def transcribe(self, audio_bytes: bytes) -> Optional[str]:
        """
        Transcribe audio to text using Google Speech Recognition.

        Args:
            audio_bytes: Raw audio data (WAV format)

        Returns:
            Transcribed text, or None if transcription failed
        """
        try:
            with sr.AudioFile(io.BytesIO(audio_bytes)) as source:
                audio_data = self.recognizer.record(source)
            return self.recognizer.recognize_google(audio_data)
        except sr.UnknownValueError:
            logger.warning("Could not understand audio")
            return None
        except sr.RequestError as e:
            logger.error(f"Speech recognition service error: {e}")
            return None
        except (ValueError, EOFError) as e:
            logger.error(f"Unreadable audio: {e}")
            return None

    async def listen(self, audio: bytes) -> AsyncIterator[Transcript]:
        """
        Yield transcripts for a captured utterance.

        The Google recognizer works on whole recordings, so there is a
        single final transcript (or none).
        """
        # The recognizer blocks on a network call; keep timer clocks ticking
        text = await asyncio.to_thread(self.transcribe, audio)
        if text:
            yield Transcript(text=text.strip(), is_final=True)

    async def text_to_speech(
        self,
        text: str,
        voice: Optional[str] = None,
        rate: Optional[str] = None
    ) -> Optional[bytes]:
        """
        Convert text to speech audio using edge-tts.

        Args:
            text: Text to speak; rewritten to be speech friendly first
            voice: Edge-TTS voice ID (e.g., 'en-US-AriaNeural')
            rate: Speech rate (e.g., '+20%', '-10%')

        Returns:
            MP3 audio bytes, or None if TTS failed
        """
        speech_text = make_speech_friendly(text)
        if not speech_text.strip():
            return None
        try:
            communicate = edge_tts.Communicate(speech_text, voice or self.voice, rate=rate or self.rate)
            audio_bytes = b""
            async for chunk in communicate.stream():
                if chunk["type"] == "audio":
                    audio_bytes += chunk["data"]
            return audio_bytes if audio_bytes else None
        except Exception as e:
            logger.error(f"Edge-TTS error: {e}")
            return None

    async def speak(self, text: str) -> Optional[bytes]:
        """Speaker interface: synthesize text with the configured voice."""
        return await self.text_to_speech(text)

    @staticmethod
    def get_available_voices() -> dict[str, str]:
        """Get available voice options as {voice_id: display_name}."""
        return VOICE_OPTIONS.copy()
