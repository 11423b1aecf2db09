from __future__ import annotations

import logging
import math
from typing import List

from gendelbrot.errors import PartitionError
from gendelbrot.fractals.base import Band, Batch, BatchPlan


logger = logging.getLogger(__name__)


def partition_rows(image_height: int, worker_count: int) -> List[Band]:
    """
    Split [0, image_height) into contiguous row bands, one per worker.

    Every band gets image_height // worker_count rows and the last one also
    absorbs the remainder. With more workers than rows there is nothing to
    give the extra workers, so the whole image becomes a single band.
    """
    if image_height <= 0:
        raise PartitionError(f"image_height must be positive, got {image_height}")
    if worker_count <= 0:
        raise PartitionError(f"worker_count must be positive, got {worker_count}")

    if worker_count > image_height:
        logger.debug("%d workers for %d rows; collapsing to a single band",
                     worker_count, image_height)
        return [Band(index=0, row_offset=0, row_count=image_height)]

    slice_height = image_height // worker_count
    remainder = image_height % worker_count

    bands: List[Band] = []
    for i in range(worker_count):
        rows = slice_height + remainder if i == worker_count - 1 else slice_height
        bands.append(Band(index=i, row_offset=i * slice_height, row_count=rows))
    return bands


def plan_batches(
        total_pixels: int,
        threads_per_block: int = 256,
        target_rounds: int = 100,
        min_blocks_per_batch: int = 100,
) -> BatchPlan:
    """
    Cover the flattened pixel range [0, total_pixels) with kernel launches.

    Batches are sized so the image takes roughly target_rounds launches,
    but never fewer than min_blocks_per_batch blocks per launch (capped at
    what the whole image needs) so each launch fills the device.
    """
    if total_pixels <= 0:
        raise PartitionError(f"total_pixels must be positive, got {total_pixels}")
    if threads_per_block <= 0 or target_rounds <= 0 or min_blocks_per_batch <= 0:
        raise PartitionError(
            "threads_per_block, target_rounds and min_blocks_per_batch must be positive")

    total_blocks = math.ceil(total_pixels / threads_per_block)
    blocks_per_batch = max(math.ceil(total_blocks / target_rounds),
                           min(min_blocks_per_batch, total_blocks),
                           1)
    batch_size = blocks_per_batch * threads_per_block

    batches = [
        Batch(index=i, offset=offset, count=min(batch_size, total_pixels - offset))
        for i, offset in enumerate(range(0, total_pixels, batch_size))
    ]
    logger.debug("Batch plan: %d pixels, %d blocks x %d threads per batch, %d batches",
                 total_pixels, blocks_per_batch, threads_per_block, len(batches))
    return BatchPlan(threads_per_block=threads_per_block,
                     blocks_per_batch=blocks_per_batch,
                     batches=batches)
