"""
Guild icon handling: download, convert to webp, save under the CDN path.

Conversion shells out to ``cwebp`` (or ``gif2webp`` for animated icons), so
those binaries must be installed on the host.
"""

import asyncio
import logging
import os
import secrets
import tempfile

import requests

from serverlist.errors import ExternalFailure, ImageConversionError

logger = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT = 10


def _write_file(path: str, data: bytes):
    with open(path, "wb") as f:
        f.write(data)


def _read_file(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


async def image_to_webp(source_name: str, data: bytes) -> bytes:
    """Re-encode ``data`` as webp. ``source_name`` is only used for its extension."""
    tmp_dir = tempfile.gettempdir()
    tag = secrets.token_hex(16)
    src = os.path.join(tmp_dir, f"pconv_{tag}")
    dst = os.path.join(tmp_dir, f"pconv_{tag}.webp")

    path = source_name.split("?")[0]
    if path.endswith("gif"):
        args = ["gif2webp", "-q", "100", "-m", "3", src, "-o", dst, "-v"]
    else:
        args = ["cwebp", "-q", "100", src, "-o", dst, "-v"]

    await asyncio.to_thread(_write_file, src, data)

    try:
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ImageConversionError(f"Could not start {args[0]}: {e}") from e

        stdout, stderr = await proc.communicate()

        if proc.returncode != 0:
            raise ImageConversionError(
                f"Failed to convert image: {stdout.decode(errors='replace')} {stderr.decode(errors='replace')}"
            )

        return await asyncio.to_thread(_read_file, dst)
    finally:
        for leftover in (src, dst):
            if os.path.exists(leftover):
                os.remove(leftover)


class AvatarStore:
    """Downloads guild icons and writes webp copies for teams and servers."""

    def __init__(self, cdn_path: str, timeout: int = DOWNLOAD_TIMEOUT):
        self.cdn_path = cdn_path
        self.timeout = timeout

    def _get(self, url: str) -> bytes:
        response = requests.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.content

    async def download(self, url: str) -> bytes:
        try:
            return await asyncio.to_thread(self._get, url)
        except requests.RequestException as e:
            raise ExternalFailure(f"Failed to download image {url}: {e}") from e

    def _write(self, kind: str, target_id: str, data: bytes) -> str:
        directory = os.path.join(self.cdn_path, "avatars", kind)
        os.makedirs(directory, exist_ok=True)
        path = os.path.join(directory, f"{target_id}.webp")
        with open(path, "wb") as f:
            f.write(data)
        return path

    async def store(self, icon_url: str, team_id: str, server_id) -> None:
        """Save the icon at ``icon_url`` as both the team and the server avatar."""
        data = await self.download(icon_url)
        webp = await image_to_webp(icon_url, data)

        for kind, target_id in (("teams", team_id), ("servers", str(server_id))):
            path = await asyncio.to_thread(self._write, kind, target_id, webp)
            logger.info(f"Saved {kind} avatar to {path}")
