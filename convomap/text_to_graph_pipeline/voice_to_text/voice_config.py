# convomap/text_to_graph_pipeline/voice_to_text/voice_config.py

from dataclasses import dataclass
from typing import Optional


@dataclass
class VoiceConfig:
    """
    Configuration settings for SpeechRecognitionCapture.
    Phrase detection uses the speech_recognition library VAD; each phrase is
    then transcribed with the Google Web Speech API.
    """
    # Seconds of silence after speaking before a phrase counts as complete.
    # Lower feels more responsive, higher suits speakers who pause to think.
    pause_threshold: float = 0.9

    # Maximum length of one phrase in seconds. None for no limit.
    phrase_time_limit: Optional[int] = 45

    # Adapt the energy threshold to ambient noise. Recommended.
    dynamic_energy_threshold: bool = True

    # Manual energy threshold, only used when dynamic_energy_threshold is False.
    energy_threshold: int = 1000

    # How much louder than ambient noise speech must be.
    dynamic_energy_ratio: float = 1.3

    # Seconds spent calibrating for ambient noise at start.
    calibration_seconds: float = 1.0

    sample_rate: int = 16000

    # Recognition language (BCP-47)
    language: str = "en-US"
