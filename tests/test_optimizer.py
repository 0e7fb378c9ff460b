"""
Tests for imaging/optimizer.py.

Covers:
  - optimize_image_for_api(): small files pass through byte-identical,
    large files are compressed into the 1024 box
  - aggregate(): totals, ratio, zero-size guard
  - optimize_batch_for_api(): order, hooks, all-or-nothing failure
"""
from __future__ import annotations

from io import BytesIO

import pytest
from PIL import Image

from errors import ImageDecodeError
from imaging.estimator import estimate_tokens_for_bytes, should_compress_image
from imaging.files import ImageFile
from imaging.optimizer import (
    aggregate,
    optimize_batch_for_api,
    optimize_image_for_api,
    passthrough,
)
from pipeline_hooks import PipelineHooks


# ── Single image ──────────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestOptimizeImage:
    async def test_small_file_untouched(self, make_image_file):
        f = make_image_file(800, 600)
        out = await optimize_image_for_api(f)
        assert out.file is f
        assert out.metadata.was_compressed is False
        assert out.metadata.original_size == out.metadata.final_size == f.size
        assert out.metadata.compression_ratio == 0.0
        assert out.metadata.estimated_tokens == estimate_tokens_for_bytes(f.size)

    async def test_large_file_compressed(self, make_image_file):
        # a 4000x3000 camera-sized photo, several MB as a noisy JPEG
        f = make_image_file(4000, 3000, noise=True, quality=95)
        assert f.size > 1024 * 1024
        out = await optimize_image_for_api(f)
        assert out.metadata.was_compressed is True
        assert out.metadata.original_size == f.size
        assert out.metadata.final_size == out.file.size
        assert out.metadata.final_size < f.size
        assert out.metadata.estimated_tokens == estimate_tokens_for_bytes(out.file.size)
        assert out.file.mime_type == "image/jpeg"

        w, h = Image.open(BytesIO(out.file.data)).size
        assert (w, h) == (1024, 768)

    async def test_large_heic_compressed(self, make_image_file):
        f = make_image_file(3000, 2000, name="IMG_0001.heic", fmt="HEIF", noise=True)
        assert should_compress_image(f)
        out = await optimize_image_for_api(f)
        assert out.metadata.was_compressed is True
        assert out.file.mime_type == "image/jpeg"
        assert Image.open(BytesIO(out.file.data)).size == (1024, 683)


# ── Aggregation ───────────────────────────────────────────────────────────────

class TestAggregate:
    def test_totals(self):
        a = passthrough(ImageFile("a.jpg", b"x" * 100))
        b = passthrough(ImageFile("b.jpg", b"y" * 300))
        batch = aggregate([a, b])
        assert batch.files == [a.file, b.file]
        assert batch.original_total_size == 400
        assert batch.compressed_total_size == 400
        assert batch.total_compression_ratio == 0.0
        assert batch.total_estimated_tokens == (
            a.metadata.estimated_tokens + b.metadata.estimated_tokens
        )
        assert batch.compressed_count == 0

    def test_empty_batch_has_zero_ratio(self):
        batch = aggregate([])
        assert batch.original_total_size == 0
        assert batch.total_compression_ratio == 0.0
        assert batch.files == []

    def test_zero_byte_files_do_not_divide_by_zero(self):
        batch = aggregate([passthrough(ImageFile("empty.jpg", b""))])
        assert batch.total_compression_ratio == 0.0


# ── Batch ─────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestOptimizeBatch:
    async def test_mixed_batch_keeps_order(self, make_image_file):
        small = make_image_file(400, 300, name="small.jpg")
        large = make_image_file(2000, 1500, name="large.jpg", noise=True, quality=95)
        batch = await optimize_batch_for_api([small, large], hooks=PipelineHooks())

        assert len(batch.files) == 2
        assert batch.files[0] is small
        assert batch.files[1].name == "compressed_large.jpg"
        assert [m.was_compressed for m in batch.individual_results] == [False, True]
        assert batch.compressed_count == 1
        assert batch.original_total_size == small.size + large.size
        assert batch.compressed_total_size == sum(f.size for f in batch.files)
        expected = (
            (batch.original_total_size - batch.compressed_total_size)
            / batch.original_total_size * 100
        )
        assert batch.total_compression_ratio == pytest.approx(expected)

    async def test_hooks_fire_around_batch(self, make_image_file):
        events = []
        hooks = PipelineHooks(
            pre_compression=events.append,
            post_compression=events.append,
        )
        files = [make_image_file(300, 200), make_image_file(200, 300)]
        await optimize_batch_for_api(files, hooks=hooks)

        assert [e.stage for e in events] == ["pre_compression", "post_compression"]
        assert events[0].context["file_count"] == 2
        assert events[0].context["total_bytes"] == sum(f.size for f in files)
        assert events[1].context["compressed_count"] == 0

    async def test_one_failure_fails_whole_batch(self, make_image_file):
        good = make_image_file(300, 200)
        # big enough to need compression but not decodable
        bad = ImageFile("bad.jpg", b"\x00" * 2_000_000)
        events = []
        hooks = PipelineHooks(post_compression=events.append)

        with pytest.raises(ImageDecodeError):
            await optimize_batch_for_api([good, bad], hooks=hooks)
        assert events == []
