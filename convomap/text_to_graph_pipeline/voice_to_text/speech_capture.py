import asyncio
import logging
from typing import Optional

import speech_recognition as sr

from convomap.text_to_graph_pipeline.voice_to_text.capture_source import (
    CaptureErrorHandler,
    CaptureEvent,
    CaptureEventHandler,
    CaptureSource,
)
from convomap.text_to_graph_pipeline.voice_to_text.voice_config import VoiceConfig

logger = logging.getLogger(__name__)


class SpeechRecognitionCapture(CaptureSource):
    """
    Microphone capture using speech_recognition.

    1. listen_in_background detects complete spoken phrases on its own thread.
    2. Each phrase is transcribed there with the Google Web Speech API.
    3. The text is handed to the event loop thread as a final CaptureEvent.

    Recognition request errors (network, quota) are reported through on_error.
    Phrases that contain no recognizable speech are dropped.
    """

    def __init__(self, config: Optional[VoiceConfig] = None, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.config = config or VoiceConfig()
        self._loop = loop

        self.recognizer = sr.Recognizer()
        self.recognizer.pause_threshold = self.config.pause_threshold
        self.recognizer.energy_threshold = self.config.energy_threshold
        self.recognizer.dynamic_energy_threshold = self.config.dynamic_energy_threshold
        self.recognizer.dynamic_energy_ratio = self.config.dynamic_energy_ratio

        self._stop_listening_callback = None
        self._on_event: Optional[CaptureEventHandler] = None
        self._on_error: Optional[CaptureErrorHandler] = None

    def start(self, on_event: CaptureEventHandler, on_error: CaptureErrorHandler) -> None:
        """Starts the background audio capture. Must be called from the event loop thread."""
        if self._stop_listening_callback is not None:
            logger.warning("Audio capture is already running.")
            return

        self._loop = self._loop or asyncio.get_running_loop()
        self._on_event = on_event
        self._on_error = on_error

        source = sr.Microphone(sample_rate=self.config.sample_rate)
        with source:
            logger.info("Calibrating for ambient noise... Please be quiet for a moment.")
            self.recognizer.adjust_for_ambient_noise(source, duration=self.config.calibration_seconds)
            logger.info(f"Calibration complete. Energy threshold: {self.recognizer.energy_threshold:.2f}")

        self._stop_listening_callback = self.recognizer.listen_in_background(
            source,
            self._audio_data_callback,
            phrase_time_limit=self.config.phrase_time_limit,
        )
        logger.info("Listening in the background...")

    def stop(self) -> None:
        """Stops the background audio capture."""
        if self._stop_listening_callback:
            self._stop_listening_callback(wait_for_stop=False)
            self._stop_listening_callback = None
            logger.info("Background audio capture stopped.")
        self._on_event = None
        self._on_error = None

    def _audio_data_callback(self, recognizer: sr.Recognizer, audio_data: sr.AudioData) -> None:
        """Runs on the listener thread for every detected phrase"""
        try:
            text = recognizer.recognize_google(audio_data, language=self.config.language)
        except sr.UnknownValueError:
            logger.debug("Phrase contained no recognizable speech")
            return
        except sr.RequestError as e:
            logger.error(f"Speech recognition request failed: {e}")
            self._dispatch_error(e)
            return

        text = text.strip()
        if text:
            logger.info(f"Transcription result: {text}")
            self._dispatch(CaptureEvent(text=text, is_final=True))

    def _dispatch(self, event: CaptureEvent) -> None:
        handler = self._on_event
        if handler is not None and self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(handler, event)

    def _dispatch_error(self, error: Exception) -> None:
        handler = self._on_error
        if handler is not None and self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(handler, error)
