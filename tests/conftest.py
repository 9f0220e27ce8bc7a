"""
Test configuration and shared fixtures.
"""

from __future__ import annotations

import stat
import sys
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from vocord.config import VocordConfig

OGG_BYTES = b"OggS\x00\x02" + b"\x00" * 64


@pytest.fixture
def ogg_bytes() -> bytes:
    return OGG_BYTES


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Return a scratch directory that does not exist yet."""
    return tmp_path / "scratch"


@pytest.fixture
def config(tmp_path: Path) -> VocordConfig:
    """Return a config rooted entirely inside tmp_path."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    return VocordConfig(data_dir=data_dir, temp_dir=tmp_path / "scratch")


@pytest.fixture
def make_tool(tmp_path: Path) -> Callable[[str, str], Path]:
    """Create an executable Python script standing in for an external tool.

    The script body can use ``LOG`` (a Path next to the script) to record
    its arguments for later assertions.
    """
    if sys.platform == "win32":
        pytest.skip("script stand-ins need a POSIX shebang")

    def _make(path: str | Path, body: str) -> Path:
        tool = Path(path)
        if not tool.is_absolute():
            tool = tmp_path / "bin" / tool
        tool.parent.mkdir(parents=True, exist_ok=True)
        header = (
            f"#!{sys.executable}\n"
            "import json, shutil, sys, time\n"
            "from pathlib import Path\n"
            "LOG = Path(__file__).with_name(Path(__file__).name + '.log')\n"
        )
        tool.write_text(header + body)
        tool.chmod(tool.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return tool

    return _make


@pytest.fixture
def fake_ffmpeg(make_tool) -> Path:
    """An ffmpeg stand-in that copies its input to its output."""
    return make_tool(
        "ffmpeg",
        "args = sys.argv[1:]\n"
        "LOG.write_text(json.dumps(args))\n"
        "shutil.copyfile(args[args.index('-i') + 1], args[-1])\n",
    )


@pytest.fixture
def mock_client() -> Callable[..., httpx.Client]:
    """Factory for httpx clients whose requests are answered by a handler."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture
def ogg_server(mock_client) -> tuple[httpx.Client, list[httpx.Request]]:
    """Client serving OGG_BYTES for every request, plus the request log."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=OGG_BYTES)

    return mock_client(handler), seen
