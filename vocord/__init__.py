"""
Vocord - local voice message transcription.

Downloads voice messages from trusted media hosts and transcribes them
with a local Whisper backend through a three-stage pipeline: download →
conversion → transcription.
"""

__version__ = "0.1.0"
