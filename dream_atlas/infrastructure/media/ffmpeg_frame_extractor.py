import asyncio
import logging
import tempfile
import time
from pathlib import Path
from typing import List

import psutil

from dream_atlas.domain.ports.media import FrameExtractor
from dream_atlas.services.media.classifier import is_remote_url

logger = logging.getLogger(__name__)

# 0.0 is often a black frame; 0.1 s in is the first useful one
_SEEK_SECONDS = "0.1"

# playlists must not pull file:, concat: or data: entries either
_PROTOCOL_WHITELIST = "http,https,tcp,tls"


def frame_command(binary: str, video_url: str, out: Path) -> List[str]:
    return [
        binary, "-hide_banner", "-loglevel", "error", "-y",
        "-protocol_whitelist", _PROTOCOL_WHITELIST,
        "-ss", _SEEK_SECONDS,
        "-i", video_url,
        "-frames:v", "1",
        "-q:v", "2",
        "-f", "image2",
        str(out),
    ]


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    await proc.wait()


async def _run_with_mem(cmd: list[str], timeout_s: float) -> list[int]:
    """Launch cmd with asyncio and sample its RSS every 250 ms.
       Returns the list of samples in bytes."""
    proc = await asyncio.create_subprocess_exec(
        *cmd, stdout=asyncio.subprocess.DEVNULL, stderr=asyncio.subprocess.PIPE
    )
    samples = []
    try:
        p = psutil.Process(proc.pid)
    except psutil.Error:                          # already gone
        p = None
    async def sampler():
        while p is not None and proc.returncode is None:
            try:
                samples.append(p.memory_info().rss)
            except psutil.Error:
                break
            await asyncio.sleep(0.25)
    task = asyncio.create_task(sampler())
    try:
        _, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout_s)
    except asyncio.TimeoutError:
        await _kill(proc)
        raise RuntimeError(f"ffmpeg timed out after {timeout_s:.0f}s")
    except asyncio.CancelledError:
        # caller went away; the child must not outlive the request
        await _kill(proc)
        raise
    finally:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
    if proc.returncode:                           # propagate failure
        raise RuntimeError(stderr.decode(errors="replace")[-300:])
    return samples


class FFmpegFrameExtractor(FrameExtractor):
    """Cut a single JPEG still out of a remote video with the ffmpeg CLI."""

    def __init__(self, binary: str = "ffmpeg", timeout_s: float = 60.0) -> None:
        self._binary = binary
        self._timeout_s = timeout_s

    async def extract_first_frame(self, video_url: str) -> bytes:
        if not is_remote_url(video_url):
            raise ValueError(f"refusing to decode non-http media: {video_url[:100]}")
        start = time.time()
        with tempfile.TemporaryDirectory(prefix="atlas-frame-") as tmp:
            out = Path(tmp) / "frame.jpg"
            try:
                samples = await _run_with_mem(frame_command(self._binary, video_url, out), self._timeout_s)
            except FileNotFoundError as e:
                raise RuntimeError(f"ffmpeg binary not found: {self._binary}") from e

            if not out.exists() or out.stat().st_size == 0:
                raise RuntimeError("ffmpeg produced no frame")
            data = out.read_bytes()

        peak_mb = max(samples, default=0) / (1024 * 1024)
        logger.info(f"Extracted frame ({len(data)} bytes) in {time.time() - start:.2f}s, ffmpeg peak RSS {peak_mb:.1f} MB")
        return data
