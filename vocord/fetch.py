"""
vocord.fetch - Allow-listed HTTPS audio download.

Downloads voice-message audio from a fixed set of media hosts into the
scratch workspace. Redirects are followed by hand so every hop is checked
against the same scheme and host rules as the original URL.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from urllib.parse import urljoin, urlsplit

import httpx

from vocord.config import DEFAULT_ALLOWED_HOSTS
from vocord.exceptions import (
    DownloadFailedError,
    FetchError,
    InvalidURLError,
    MissingRedirectTargetError,
    NetworkError,
    TooManyRedirectsError,
    UntrustedHostError,
)
from vocord.logging import logger
from vocord.workspace import MAX_AGE_SECONDS, discard, ensure_workspace, scratch_path

MAX_REDIRECTS = 5
REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})
AUDIO_SUFFIXES = frozenset({".ogg", ".oga", ".opus", ".mp3", ".m4a", ".wav", ".webm"})
USER_AGENT = "Mozilla/5.0 (compatible; Vocord/1.0)"


def validate_audio_url(url: str, allowed_hosts: Iterable[str] = DEFAULT_ALLOWED_HOSTS) -> str:
    """Check scheme and host of an audio URL.

    Returns:
        The lower-cased host name

    Raises:
        InvalidURLError: If the URL is not HTTPS or cannot be parsed
        UntrustedHostError: If the host is not in the allow-list
    """
    if not url.startswith("https://"):
        raise InvalidURLError("Only HTTPS URLs are supported")

    try:
        parts = urlsplit(url)
        host = parts.hostname
        parts.port  # raises ValueError for a malformed port
    except ValueError as e:
        raise InvalidURLError(f"Invalid URL: {url}") from e

    if parts.scheme != "https" or not host:
        raise InvalidURLError(f"Invalid URL: {url}")

    if host not in {h.lower() for h in allowed_hosts}:
        raise UntrustedHostError(host)

    return host


def scratch_suffix(url: str) -> str:
    """Pick the scratch file extension from the URL path, .ogg by default."""
    suffix = Path(urlsplit(url).path).suffix.lower()
    return suffix if suffix in AUDIO_SUFFIXES else ".ogg"


def fetch_audio(
    url: str,
    *,
    workspace: Path | None = None,
    client: httpx.Client | None = None,
    allowed_hosts: Iterable[str] = DEFAULT_ALLOWED_HOSTS,
    max_redirects: int = MAX_REDIRECTS,
    timeout: float = 30.0,
    max_age: float = MAX_AGE_SECONDS,
) -> Path:
    """Download an audio file into the scratch workspace.

    Args:
        url: HTTPS URL on an allow-listed host
        workspace: Scratch directory, created or swept before writing
        client: Optional httpx client; one is created and closed otherwise
        allowed_hosts: Hosts the URL and every redirect target must match
        max_redirects: Number of redirect hops allowed
        timeout: Per-request timeout in seconds
        max_age: Age in seconds after which stale scratch files are swept

    Returns:
        Path of the downloaded file. The caller owns it from here on.

    Raises:
        FetchError: Any of its subclasses, after removing a partial file
    """
    allowed = tuple(allowed_hosts)
    validate_audio_url(url, allowed)

    workspace = ensure_workspace(workspace, max_age=max_age)
    owns_client = client is None
    if client is None:
        client = httpx.Client(timeout=timeout, follow_redirects=False)

    try:
        return _download(client, url, workspace, allowed, max_redirects)
    finally:
        if owns_client:
            client.close()


def _download(
    client: httpx.Client,
    url: str,
    workspace: Path,
    allowed_hosts: tuple[str, ...],
    max_redirects: int,
) -> Path:
    current = url
    hops = 0

    while True:
        target: Path | None = None
        try:
            with client.stream(
                "GET",
                current,
                headers={"User-Agent": USER_AGENT},
                follow_redirects=False,
            ) as response:
                status = response.status_code

                if status in REDIRECT_STATUSES:
                    if hops >= max_redirects:
                        raise TooManyRedirectsError(
                            f"Too many redirects (more than {max_redirects})"
                        )
                    location = response.headers.get("location")
                    if not location:
                        raise MissingRedirectTargetError(status)
                    next_url = urljoin(current, location)
                    validate_audio_url(next_url, allowed_hosts)
                    logger.debug("Following redirect %d -> %s", status, next_url)
                    current = next_url
                    hops += 1
                    continue

                if not response.is_success:
                    raise DownloadFailedError(status)

                target = scratch_path(workspace, scratch_suffix(url))
                with open(target, "wb") as f:
                    for chunk in response.iter_bytes():
                        f.write(chunk)

            logger.debug("Downloaded %s to %s", current, target.name)
            return target

        except httpx.InvalidURL as e:
            discard(target)
            raise InvalidURLError(f"Invalid URL: {current}") from e
        except httpx.HTTPError as e:
            discard(target)
            raise NetworkError(f"Network error while downloading audio: {e}") from e
        except OSError as e:
            discard(target)
            raise FetchError(f"Could not save downloaded audio: {e}") from e
        except BaseException:
            discard(target)
            raise
