"""
vocord.convert - Audio format conversion.

Pipeline stage between download and transcription: normalizes downloaded
audio to 16kHz mono 16-bit WAV for backends that cannot decode Ogg/Opus.
"""

from __future__ import annotations
