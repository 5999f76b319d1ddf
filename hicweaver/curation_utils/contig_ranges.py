#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HiCWeaver v0.1.0

Contig range builder: maps a contig ordering onto overview-pixel ranges.

The overview contact map is a downsampled square of side ``overview_size``;
contigs are described in full-resolution texture pixels. Each contig in the
current order receives a range whose width is proportional to its share of
the texture, with both edges rounded from the cumulative pixel count so the
ranges tile ``[0, overview_size)`` without gaps or overlaps.

Author: HiCWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import logging
import math
from typing import List, Sequence

from ..curation_core.data_structures import Contig, ContigRange

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""
    return int(math.floor(value + 0.5))


def build_contig_ranges(
    contigs: Sequence[Contig],
    contig_order: Sequence[int],
    texture_size: int,
    overview_size: int,
) -> List[ContigRange]:
    """
    Build one overview-pixel range per position in ``contig_order``.

    Args:
        contigs: Full contig array
        contig_order: Contig indices in display order
        texture_size: Full-resolution pixel span of the map
        overview_size: Side of the overview contact map

    Returns:
        ContigRange list; ``ranges[k].order_index == k``
    """
    ranges: List[ContigRange] = []
    if texture_size <= 0:
        logger.debug("Non-positive texture size; all contig ranges are empty")
        return [ContigRange(0, 0, k) for k in range(len(contig_order))]

    scale = overview_size / texture_size
    accumulated = 0
    for order_index, contig_id in enumerate(contig_order):
        contig = contigs[contig_id]
        start = round_half_up(accumulated * scale)
        accumulated += contig.pixel_length
        end = round_half_up(accumulated * scale)
        ranges.append(ContigRange(start, end, order_index))

    return ranges


def subset_ranges(ranges: Sequence[ContigRange], order_indices: Sequence[int]) -> List[ContigRange]:
    """
    Select ranges for a subset of order positions, renumbered locally.

    The selected ranges keep their global pixel coordinates, so a subset can
    be scored against the same contact map as the full assembly.
    """
    return [
        ContigRange(ranges[global_idx].start, ranges[global_idx].end, local_idx)
        for local_idx, global_idx in enumerate(order_indices)
    ]

# HiCWeaver v0.1.0
# Any usage is subject to this software's license.
