#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HiCWeaver v0.1.0

Diagonal signal profiling for the overview contact map.

Two views of the near-diagonal Hi-C signal are provided:
1. The intra-contig diagonal profile: expected intensity at each diagonal
   distance, averaged over every intra-contig pixel pair. AutoSort uses it
   to normalise inter-contig observations.
2. The diagonal density curve of a single contig: mean intensity of a narrow
   band around the diagonal at every pixel. AutoCut scans it for drops.

Contact maps may be passed as a flat ``size * size`` array or as a square
2-D array; both are indexed as ``matrix[row, col]``.

Author: HiCWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import logging
import math
from typing import Sequence

import numpy as np

from ..curation_core.data_structures import ContigRange

logger = logging.getLogger(__name__)


def as_square_matrix(contact_map) -> np.ndarray:
    """
    View a contact map as a square 2-D float array.

    Flat arrays are reshaped to ``(size, size)``. Inputs that are not square
    are cropped to the largest square they contain.
    """
    matrix = np.asarray(contact_map, dtype=np.float64)

    if matrix.ndim == 1:
        size = math.isqrt(matrix.size)
        if size * size != matrix.size:
            logger.warning(
                f"Flat contact map of length {matrix.size} is not a perfect square; "
                f"using the leading {size}x{size} block"
            )
        return matrix[: size * size].reshape(size, size)

    if matrix.ndim != 2:
        logger.warning(f"Contact map has {matrix.ndim} dimensions; treating it as empty")
        return np.zeros((0, 0), dtype=np.float64)

    size = min(matrix.shape)
    if matrix.shape[0] != matrix.shape[1]:
        logger.warning(f"Contact map shape {matrix.shape} is not square; cropping to {size}x{size}")
    return matrix[:size, :size]


def compute_intra_diagonal_profile(
    contact_map,
    contig_ranges: Sequence[ContigRange],
    max_distance: int,
) -> np.ndarray:
    """
    Expected Hi-C intensity at each diagonal distance.

    For every range and every distance ``1 <= d <= min(max_distance, width-1)``
    the values ``matrix[p + d, p]`` with ``start <= p < end - d`` are pooled
    across all ranges and averaged.

    Args:
        contact_map: Overview contact map (flat or 2-D)
        contig_ranges: Overview ranges, one per contig
        max_distance: Largest diagonal distance to profile

    Returns:
        Array of length ``max_distance + 1``; ``profile[0]`` is always 0
    """
    matrix = as_square_matrix(contact_map)
    size = matrix.shape[0]
    max_distance = max(int(max_distance), 0)

    sums = np.zeros(max_distance + 1, dtype=np.float64)
    counts = np.zeros(max_distance + 1, dtype=np.int64)

    # matrix[p + d, p] for p in [0, size - d)
    diagonals = [None] + [
        np.diagonal(matrix, offset=-d) for d in range(1, min(max_distance, size - 1) + 1)
    ]

    for contig_range in contig_ranges:
        width = contig_range.width
        start = max(contig_range.start, 0)
        stop_limit = min(contig_range.end, size)
        for d in range(1, min(max_distance, width - 1) + 1):
            if d >= len(diagonals):
                break
            stop = stop_limit - d
            if stop <= start:
                continue
            band = diagonals[d][start:stop]
            sums[d] += float(band.sum())
            counts[d] += band.size

    profile = np.zeros(max_distance + 1, dtype=np.float64)
    sampled = counts > 0
    profile[sampled] = sums[sampled] / counts[sampled]
    profile[0] = 0.0

    logger.debug(
        f"Diagonal profile over {len(contig_ranges)} ranges: "
        f"{int(sampled.sum())}/{max_distance} distances sampled"
    )
    return profile


def compute_diagonal_density(
    contact_map,
    start_pixel: int,
    end_pixel: int,
    window_size: int,
) -> np.ndarray:
    """
    Mean intensity of the diagonal band at each pixel of a contig range.

    For pixel ``p`` the band holds ``matrix[p + d, p]`` and ``matrix[p, p + d]``
    for ``1 <= d <= window_size``; out-of-bounds samples are skipped.

    Args:
        contact_map: Overview contact map (flat or 2-D)
        start_pixel: First overview pixel of the range
        end_pixel: End of the range (exclusive)
        window_size: Band half-width

    Returns:
        Density array of length ``end_pixel - start_pixel``
    """
    matrix = as_square_matrix(contact_map)
    size = matrix.shape[0]
    length = max(end_pixel - start_pixel, 0)

    sums = np.zeros(length, dtype=np.float64)
    counts = np.zeros(length, dtype=np.int64)
    positions = np.arange(start_pixel, start_pixel + length)

    for d in range(1, int(window_size) + 1):
        valid = (positions >= 0) & (positions + d < size)
        if not valid.any():
            continue
        rows = positions[valid]
        sums[valid] += matrix[rows + d, rows] + matrix[rows, rows + d]
        counts[valid] += 2

    density = np.zeros(length, dtype=np.float64)
    sampled = counts > 0
    density[sampled] = sums[sampled] / counts[sampled]
    return density

# HiCWeaver v0.1.0
# Any usage is subject to this software's license.
