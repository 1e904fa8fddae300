"""Byte-signature media classification."""

import pytest

from dream_atlas.services.media.classifier import (
    MediaClassifier,
    MediaKind,
    has_image_extension,
    has_video_extension,
    sniff_signature,
    url_extension,
)
from atlas_fakes import JPEG_HEAD, MP4_HEAD, FakeFetcher


class TestSniffSignature:

    @pytest.mark.parametrize("brand", [b"isom", b"iso2", b"mp41", b"mp42", b"avc1", b"M4V ", b"qt  "])
    def test_iso_bmff_brands_are_video(self, brand):
        head = b"\x00\x00\x00\x20ftyp" + brand + b"\x00"
        assert sniff_signature(head) == MediaKind.VIDEO

    def test_webm_ebml_is_video(self):
        assert sniff_signature(b"\x1a\x45\xdf\xa3\x01\x00\x00\x00\x00\x00\x00\x1f\x42") == MediaKind.VIDEO

    def test_riff_avi_is_video(self):
        assert sniff_signature(b"RIFF\x24\x00\x00\x00AVI LIST") == MediaKind.VIDEO

    def test_riff_webp_is_image(self):
        assert sniff_signature(b"RIFF\x24\x00\x00\x00WEBPVP8 ") == MediaKind.IMAGE

    def test_jpeg_is_image(self):
        assert sniff_signature(JPEG_HEAD) == MediaKind.IMAGE

    def test_unknown_ftyp_brand_is_not_video(self):
        # HEIC stills also use ISO-BMFF
        assert sniff_signature(b"\x00\x00\x00\x18ftypheic\x00") == MediaKind.IMAGE

    def test_empty_is_unknown(self):
        assert sniff_signature(b"") == MediaKind.UNKNOWN


class TestExtensions:

    def test_query_string_is_ignored(self):
        assert url_extension("https://cdn.example.com/a/clip.MP4?token=abc.jpg") == ".mp4"

    def test_no_extension(self):
        assert url_extension("https://cdn.example.com/media/12345") == ""

    def test_helpers(self):
        assert has_video_extension("https://x.test/v.webm")
        assert not has_video_extension("https://x.test/v.png")
        assert has_image_extension("https://x.test/v.jpeg")


class TestMediaClassifier:

    @pytest.mark.asyncio
    async def test_video_extension_short_circuits(self):
        fetcher = FakeFetcher()
        kind = await MediaClassifier(fetcher).classify("https://cdn.test/dream.mov")
        assert kind == MediaKind.VIDEO
        assert fetcher.head_calls == []

    @pytest.mark.asyncio
    async def test_mp4_served_under_jpg_name_is_video(self):
        fetcher = FakeFetcher()
        url = "https://cdn.test/still.jpg"
        fetcher.heads[url] = MP4_HEAD
        assert await MediaClassifier(fetcher).classify(url) == MediaKind.VIDEO

    @pytest.mark.asyncio
    async def test_jpeg_bytes_without_extension_are_image(self):
        fetcher = FakeFetcher()
        url = "https://cdn.test/media/777"
        fetcher.heads[url] = JPEG_HEAD
        assert await MediaClassifier(fetcher).classify(url) == MediaKind.IMAGE
        assert fetcher.head_calls == [url]

    @pytest.mark.asyncio
    async def test_unreadable_head_is_unknown(self):
        kind = await MediaClassifier(FakeFetcher()).classify("https://cdn.test/gone.png")
        assert kind == MediaKind.UNKNOWN

    @pytest.mark.asyncio
    async def test_missing_reference_is_unknown(self):
        assert await MediaClassifier(FakeFetcher()).classify(None) == MediaKind.UNKNOWN

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["file:///etc/secret-clip.mp4", "/tmp/clip.webm", "ftp://cdn.test/a.mp4", "https:///a.mp4"])
    async def test_non_http_reference_is_unknown(self, url):
        fetcher = FakeFetcher()
        assert await MediaClassifier(fetcher).classify(url) == MediaKind.UNKNOWN
        assert fetcher.head_calls == []
