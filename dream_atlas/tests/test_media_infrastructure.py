"""Adapters: httpx fetcher, S3 storage and the OpenAI error mapping."""

import asyncio
import sys
import time
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from dream_atlas.domain.ports.llm import LLMError, MediaRejectedError
from dream_atlas.infrastructure.implementations.object_storage.s3_storage_repository import S3StorageRepository
from dream_atlas.infrastructure.llm.openai_llm import OpenAILLM, is_media_error
from dream_atlas.infrastructure.media.ffmpeg_frame_extractor import FFmpegFrameExtractor, frame_command
from dream_atlas.infrastructure.media.http_fetcher import BROWSER_HEADERS, HttpMediaFetcher


class TestHttpMediaFetcher:

    @pytest.mark.asyncio
    async def test_fetch_head_sends_range_and_truncates(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["range"] = request.headers.get("range")
            seen["referer"] = request.headers.get("referer")
            # a server that ignores Range
            return httpx.Response(200, content=b"\xff\xd8\xff" + b"x" * 5000)

        fetcher = HttpMediaFetcher(transport=httpx.MockTransport(handler))
        head = await fetcher.fetch_head("https://cdn.test/a.jpg", 13)

        assert len(head) == 13
        assert head.startswith(b"\xff\xd8\xff")
        assert seen["range"] == "bytes=0-12"
        assert seen["referer"] == BROWSER_HEADERS["Referer"]

    @pytest.mark.asyncio
    async def test_fetch_returns_bare_content_type(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, content=b"PNGDATA", headers={"content-type": "image/png; charset=binary"})
        )
        fetched = await HttpMediaFetcher(transport=transport).fetch("https://cdn.test/a.png")

        assert fetched.data == b"PNGDATA"
        assert fetched.content_type == "image/png"

    @pytest.mark.asyncio
    async def test_http_errors_propagate(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(403))
        with pytest.raises(httpx.HTTPStatusError):
            await HttpMediaFetcher(transport=transport).fetch("https://cdn.test/blocked.png")


class TestS3StorageRepository:

    @pytest.mark.asyncio
    async def test_upload_returns_public_url(self):
        client = MagicMock()
        repo = S3StorageRepository(
            bucket="dream-images",
            region="us-east-1",
            public_base_url="https://media.atlas.test/",
            client=client,
        )

        url = await repo.upload_bytes("u1/abc.jpg", b"data", "image/jpeg")

        assert url == "https://media.atlas.test/u1/abc.jpg"
        kwargs = client.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "dream-images"
        assert kwargs["ContentType"] == "image/jpeg"

    def test_ownership_is_by_prefix(self):
        repo = S3StorageRepository(
            public_base_url="https://media.atlas.test",
            extra_owned_prefixes=["https://legacy.storage.test/public/dream-images"],
            client=MagicMock(),
        )
        assert repo.is_owned_url("https://media.atlas.test/u1/a.png")
        assert repo.is_owned_url("https://legacy.storage.test/public/dream-images/u1/a.png")
        assert not repo.is_owned_url("https://cdn.midjourney.com/a.png")


class TestFFmpegFrameExtractor:

    def test_command_only_allows_network_protocols(self):
        cmd = frame_command("ffmpeg", "https://cdn.test/clip.mp4", Path("/tmp/frame.jpg"))

        whitelist = cmd[cmd.index("-protocol_whitelist") + 1]
        assert set(whitelist.split(",")) == {"http", "https", "tcp", "tls"}
        assert cmd.index("-protocol_whitelist") < cmd.index("-i")
        assert cmd[cmd.index("-i") + 1] == "https://cdn.test/clip.mp4"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["file:///etc/secret-clip.mp4", "/etc/clip.mp4", "concat:a.mp4|b.mp4"])
    async def test_local_sources_are_refused_before_spawning(self, url):
        extractor = FFmpegFrameExtractor(binary="/nonexistent/ffmpeg")
        with pytest.raises(ValueError):
            await extractor.extract_first_frame(url)

    @pytest.mark.asyncio
    @pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")
    async def test_cancellation_kills_ffmpeg(self, tmp_path):
        fake = tmp_path / "slow-ffmpeg"
        fake.write_text("#!/bin/sh\nexec sleep 30\n")
        fake.chmod(0o755)
        extractor = FFmpegFrameExtractor(binary=str(fake), timeout_s=60)

        task = asyncio.create_task(extractor.extract_first_frame("https://cdn.test/clip.mp4"))
        await asyncio.sleep(0.3)
        started = time.monotonic()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert time.monotonic() - started < 5


def _bad_request(message: str, code=None) -> openai.BadRequestError:
    request = httpx.Request("POST", "https://api.openai.test/v1/chat/completions")
    response = httpx.Response(400, request=request)
    body = {"message": message, "code": code} if code else None
    return openai.BadRequestError(message, response=response, body=body)


class TestOpenAILLM:

    def test_media_error_detection(self):
        assert is_media_error(_bad_request("Invalid image URL: could not download"))
        assert not is_media_error(_bad_request("max_tokens is too large"))
        assert not is_media_error(ValueError("image"))

    def test_parameter_errors_are_not_media_errors(self):
        assert not is_media_error(_bad_request("Unsupported parameter: 'temperature' is not supported with this model."))
        assert not is_media_error(_bad_request("Unsupported value: 'messages[0].role'"))

    def test_image_error_codes_are_media_errors(self):
        assert is_media_error(_bad_request("Timeout while downloading the resource.", code="invalid_image_url"))
        assert is_media_error(_bad_request("Could not parse the attachment.", code="image_parse_error"))

    @pytest.mark.asyncio
    async def test_media_rejection_is_typed(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(side_effect=_bad_request("unsupported image format"))

        with pytest.raises(MediaRejectedError):
            await OpenAILLM(api_key="k", client=client).generate_response([{"role": "user", "content": "hi"}])

    @pytest.mark.asyncio
    async def test_other_errors_are_llm_errors(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(side_effect=_bad_request("context length exceeded"))

        with pytest.raises(LLMError) as exc:
            await OpenAILLM(api_key="k", client=client).generate_response([{"role": "user", "content": "hi"}])
        assert not isinstance(exc.value, MediaRejectedError)

    @pytest.mark.asyncio
    async def test_returns_message_content(self):
        completion = MagicMock()
        completion.choices = [MagicMock(message=MagicMock(content="<p>hi</p>"))]
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=completion)

        llm = OpenAILLM(api_key="k", model="gpt-4o-mini", temperature=0.7, client=client)
        text = await llm.generate_response([{"role": "user", "content": "hi"}], temperature=0.1)

        assert text == "<p>hi</p>"
        assert client.chat.completions.create.call_args.kwargs["temperature"] == 0.1
        assert client.chat.completions.create.call_args.kwargs["model"] == "gpt-4o-mini"
