"""
vocord.exceptions - Custom exception classes.

All Vocord-specific exceptions inherit from VocordError. Their messages are
shown to the user as-is, so each one should read as a single sentence.
"""


class VocordError(Exception):
    """Base exception for all Vocord errors."""

    pass


class ConfigError(VocordError):
    """Configuration loading or validation error."""

    pass


class FetchError(VocordError):
    """Audio download error."""

    pass


class InvalidURLError(FetchError):
    """URL is malformed or does not use HTTPS."""

    pass


class UntrustedHostError(FetchError):
    """URL points at a host outside the allow-list."""

    def __init__(self, host: str):
        self.host = host
        super().__init__(f"Untrusted audio host: {host}")


class TooManyRedirectsError(FetchError):
    """Redirect chain exceeded the hop limit."""

    pass


class MissingRedirectTargetError(FetchError):
    """Redirect response carried no Location header."""

    def __init__(self, status: int):
        self.status = status
        super().__init__(f"Redirect {status} without Location header")


class DownloadFailedError(FetchError):
    """Server answered with a non-success status."""

    def __init__(self, status: int):
        self.status = status
        super().__init__(f"Failed to download: HTTP {status}")


class NetworkError(FetchError):
    """Connection, DNS or transfer failure."""

    pass


class ConversionError(VocordError):
    """Audio conversion error."""

    pass


class ToolNotFoundError(VocordError):
    """Required external executable missing or not on PATH."""

    def __init__(self, dependency: str, message: str, install_hint: str | None = None):
        self.dependency = dependency
        self.message = message
        self.install_hint = install_hint
        text = f"{dependency} {message}"
        if install_hint:
            text = f"{text}. {install_hint}"
        super().__init__(text)


class ModelNotFoundError(VocordError):
    """Model artifact for the selected backend could not be located."""

    pass


class BackendError(VocordError):
    """Transcription backend reported a failure."""

    pass


class SubprocessTimeoutError(BackendError):
    """External process was killed by the watchdog."""

    pass


class OutputParseError(BackendError):
    """Backend output was not the expected JSON envelope."""

    def __init__(self, message: str, raw: str = ""):
        self.raw = raw
        super().__init__(message)


class EmptyOutputError(BackendError):
    """Backend exited cleanly but printed nothing."""

    pass


class SpawnError(VocordError):
    """External process could not be started."""

    pass
