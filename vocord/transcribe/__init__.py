"""
vocord.transcribe - Backend selection and invocation.

Pipeline Stage 3: pick mlx-whisper (Apple Silicon) or transcribe-cli
(everywhere else), run it as a subprocess and parse its result.
"""

from __future__ import annotations
