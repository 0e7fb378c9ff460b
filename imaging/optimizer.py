"""
Batch optimizer: prepares uploaded images for a vision call.

Each image is compressed only when the estimator says it must be; a batch is
optimized concurrently and fails as a whole if any single image fails.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from imaging.compressor import CompressionOptions, compress_image
from imaging.estimator import estimate_tokens_for_bytes, should_compress_image
from imaging.files import ImageFile
from pipeline_hooks import PipelineHooks, resolve

logger = logging.getLogger(__name__)

# Fixed policy used whenever the optimizer decides to compress
API_COMPRESSION = CompressionOptions(max_width=1024, max_height=1024, quality=0.8, format="jpeg")


@dataclass(frozen=True)
class OptimizationMetadata:
    original_size: int
    final_size: int
    compression_ratio: float
    estimated_tokens: int
    was_compressed: bool


@dataclass(frozen=True)
class OptimizedImage:
    file: ImageFile
    metadata: OptimizationMetadata


@dataclass(frozen=True)
class BatchCompressionResult:
    files: list[ImageFile]
    original_total_size: int
    compressed_total_size: int
    total_compression_ratio: float
    total_estimated_tokens: int
    individual_results: list[OptimizationMetadata] = field(default_factory=list)

    @property
    def compressed_count(self) -> int:
        return sum(1 for m in self.individual_results if m.was_compressed)


def passthrough(file: ImageFile) -> OptimizedImage:
    """Wrap an untouched file with the metadata of a no-op optimization."""
    return OptimizedImage(
        file=file,
        metadata=OptimizationMetadata(
            original_size=file.size,
            final_size=file.size,
            compression_ratio=0.0,
            estimated_tokens=estimate_tokens_for_bytes(file.size),
            was_compressed=False,
        ),
    )


async def optimize_image_for_api(file: ImageFile) -> OptimizedImage:
    if not should_compress_image(file):
        return passthrough(file)

    result = await compress_image(file, API_COMPRESSION)
    return OptimizedImage(
        file=result.file,
        metadata=OptimizationMetadata(
            original_size=result.original_size,
            final_size=result.compressed_size,
            compression_ratio=result.compression_ratio,
            estimated_tokens=estimate_tokens_for_bytes(result.compressed_size),
            was_compressed=True,
        ),
    )


def aggregate(results: Sequence[OptimizedImage]) -> BatchCompressionResult:
    individual = [r.metadata for r in results]
    original_total   = sum(m.original_size for m in individual)
    compressed_total = sum(m.final_size for m in individual)
    ratio = (
        (original_total - compressed_total) / original_total * 100
        if original_total > 0 else 0.0
    )
    return BatchCompressionResult(
        files=[r.file for r in results],
        original_total_size=original_total,
        compressed_total_size=compressed_total,
        total_compression_ratio=ratio,
        total_estimated_tokens=sum(m.estimated_tokens for m in individual),
        individual_results=individual,
    )


async def optimize_batch_for_api(
    files: Sequence[ImageFile],
    hooks: Optional[PipelineHooks] = None,
) -> BatchCompressionResult:
    """
    Optimize every file concurrently and aggregate the totals.

    There is no partial result: the first failure propagates and the
    outcome of the remaining images is discarded.
    """
    hooks = resolve(hooks)
    hooks.emit(
        "pre_compression",
        file_count=len(files),
        total_bytes=sum(f.size for f in files),
    )

    results = await asyncio.gather(*(optimize_image_for_api(f) for f in files))
    batch = aggregate(results)

    hooks.emit(
        "post_compression",
        file_count=len(batch.files),
        original_total_size=batch.original_total_size,
        compressed_total_size=batch.compressed_total_size,
        total_compression_ratio=f"{batch.total_compression_ratio:.1f}%",
        total_estimated_tokens=batch.total_estimated_tokens,
        compressed_count=batch.compressed_count,
    )
    return batch
