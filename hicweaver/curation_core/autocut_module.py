#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
HiCWeaver v0.1.0

AutoCut: Misassembly Breakpoint Detection Engine.

Scans the near-diagonal Hi-C signal of every contig for sharp drops that
mark two unrelated sequences joined by mistake:
1. Diagonal density curve per contig (band of half-width ``window_size``)
2. Local baseline from a sliding window of ``4 * window_size`` pixels,
   built from strictly positive density samples only
3. Sustained low-density regions below the baseline by ``cut_threshold``
4. Minimum fragment size enforcement against contig edges and other cuts
5. Mapping of overview-pixel offsets back to texture pixels

Pure algorithm: no state is kept between calls and inputs are not mutated.

Author: HiCWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .data_structures import AutoCutResult, Breakpoint, Contig, params_from_dict
from ..curation_utils.contig_ranges import build_contig_ranges, round_half_up
from ..curation_utils.diagonal_profile import as_square_matrix, compute_diagonal_density

logger = logging.getLogger(__name__)


# ============================================================================
#                         PARAMETERS
# ============================================================================

@dataclass
class AutoCutParams:
    """
    Tunable AutoCut parameters.

    Attributes:
        cut_threshold: Relative drop below the local baseline that marks a
            low-density pixel (0.0-1.0)
        window_size: Half-width of the diagonal band, in overview pixels
        min_fragment_size: Minimum overview pixels between a cut and a contig
            edge or another cut
        min_confidence: Breakpoints at or below this confidence are dropped
    """
    cut_threshold: float = 0.20
    window_size: int = 8
    min_fragment_size: int = 16
    min_confidence: float = 0.3

    @classmethod
    def from_dict(cls, overrides: Optional[Dict[str, Any]] = None) -> "AutoCutParams":
        """Build parameters from a partial mapping; missing fields keep defaults."""
        return params_from_dict(cls, overrides)


# ============================================================================
#                         BREAKPOINT DETECTION
# ============================================================================

def compute_local_baseline(density: np.ndarray, window_size: int) -> np.ndarray:
    """
    Sliding local baseline of a density curve.

    Each position averages the strictly positive samples of a centred window
    of width ``4 * window_size``. Zero-density pixels carry no evidence and
    are left out; a window without positive samples yields 0.
    """
    density = np.asarray(density, dtype=np.float64)
    length = density.size
    if length == 0:
        return np.zeros(0, dtype=np.float64)

    half = 2 * max(int(window_size), 0)
    positive = density > 0

    # Prefix sums over positive samples only
    value_cumsum = np.concatenate(([0.0], np.cumsum(np.where(positive, density, 0.0))))
    count_cumsum = np.concatenate(([0], np.cumsum(positive.astype(np.int64))))

    idx = np.arange(length)
    lo = np.clip(idx - half, 0, length)
    hi = np.clip(idx + half + 1, 0, length)

    window_sums = value_cumsum[hi] - value_cumsum[lo]
    window_counts = count_cumsum[hi] - count_cumsum[lo]

    baseline = np.zeros(length, dtype=np.float64)
    has_signal = window_counts > 0
    baseline[has_signal] = window_sums[has_signal] / window_counts[has_signal]
    return baseline


def _find_low_regions(is_low: np.ndarray) -> List[Tuple[int, int]]:
    """Contiguous runs of True as half-open ``(start, end)`` pairs."""
    regions = []
    region_start = -1
    for i, low in enumerate(is_low):
        if low:
            if region_start < 0:
                region_start = i
        elif region_start >= 0:
            regions.append((region_start, i))
            region_start = -1
    if region_start >= 0:
        regions.append((region_start, len(is_low)))
    return regions


def min_region_width(window_size: int) -> int:
    """Narrowest low-density run accepted as a breakpoint region."""
    return max(3, int(window_size) // 2)


def enforce_min_fragment_size(
    candidates: List[Breakpoint],
    total_length: int,
    min_size: int,
) -> List[Breakpoint]:
    """
    Keep breakpoints that leave every fragment at least ``min_size`` long.

    Candidates are accepted strongest first; a candidate closer than
    ``min_size`` to either contig edge or to an accepted breakpoint is
    discarded. The survivors are returned sorted by offset.
    """
    accepted: List[Breakpoint] = []
    for bp in sorted(candidates, key=lambda b: (-b.confidence, b.offset)):
        if bp.offset < min_size or total_length - bp.offset < min_size:
            continue
        if any(abs(bp.offset - kept.offset) < min_size for kept in accepted):
            continue
        accepted.append(bp)
    return sorted(accepted, key=lambda b: b.offset)


def detect_breakpoints(
    density: np.ndarray,
    window_size: int,
    cut_threshold: float,
    min_fragment_size: int,
) -> List[Breakpoint]:
    """
    Detect breakpoints in a single contig's density curve.

    Args:
        density: Diagonal density curve of the contig
        window_size: Band half-width used to build the curve
        cut_threshold: Relative drop below the local baseline (0.0-1.0)
        min_fragment_size: Minimum pixels between a cut and an edge or cut

    Returns:
        Breakpoints with offsets relative to the start of the curve, sorted
        by offset
    """
    density = np.asarray(density, dtype=np.float64)
    length = density.size
    if length == 0 or length < min_fragment_size * 2:
        return []

    baseline = compute_local_baseline(density, window_size)
    drop = np.zeros(length, dtype=np.float64)
    has_baseline = baseline > 0
    drop[has_baseline] = (baseline[has_baseline] - density[has_baseline]) / baseline[has_baseline]
    is_low = has_baseline & (drop > cut_threshold)

    min_width = min_region_width(window_size)
    candidates = []
    for start, end in _find_low_regions(is_low):
        if end - start < min_width:
            continue
        confidence = float(np.clip(drop[start:end].mean(), 0.0, 1.0))
        candidates.append(Breakpoint(offset=(start + end) // 2, confidence=confidence))

    breakpoints = enforce_min_fragment_size(candidates, length, min_fragment_size)
    logger.debug(
        f"Density curve of {length} px: {len(candidates)} low regions, "
        f"{len(breakpoints)} breakpoints kept"
    )
    return breakpoints


# ============================================================================
#                         TOP-LEVEL AUTOCUT
# ============================================================================

def autocut(
    contact_map,
    contigs: Sequence[Contig],
    contig_order: Sequence[int],
    texture_size: int,
    params: Optional[AutoCutParams] = None,
) -> AutoCutResult:
    """
    Propose breakpoints for every contig in the current order.

    Args:
        contact_map: Overview contact map (flat or 2-D, symmetric)
        contigs: Full contig array
        contig_order: Contig indices in display order
        texture_size: Full-resolution pixel span of the map
        params: AutoCut parameters (defaults when None)

    Returns:
        AutoCutResult keyed by order index; offsets in texture pixels
    """
    p = params or AutoCutParams()
    matrix = as_square_matrix(contact_map)
    size = matrix.shape[0]
    result = AutoCutResult()

    ranges = build_contig_ranges(contigs, contig_order, texture_size, size)

    for contig_range in ranges:
        contig = contigs[contig_order[contig_range.order_index]]
        pixel_length = contig.pixel_length
        overview_length = contig_range.width

        if overview_length < p.min_fragment_size * 2 or overview_length <= 0:
            continue

        density = compute_diagonal_density(
            matrix, contig_range.start, contig_range.end, p.window_size
        )
        candidates = detect_breakpoints(
            density, p.window_size, p.cut_threshold, p.min_fragment_size
        )
        if not candidates:
            continue

        scale = pixel_length / overview_length
        texture_breakpoints: List[Breakpoint] = []
        seen_offsets = set()
        for bp in candidates:
            offset = round_half_up(bp.offset * scale)
            if offset <= 0 or offset >= pixel_length:
                continue
            if bp.confidence <= p.min_confidence or offset in seen_offsets:
                continue
            seen_offsets.add(offset)
            texture_breakpoints.append(Breakpoint(offset=offset, confidence=bp.confidence))

        if texture_breakpoints:
            result.breakpoints[contig_range.order_index] = texture_breakpoints
            logger.debug(
                f"Contig {contig.name}: {len(texture_breakpoints)} breakpoint(s) at "
                f"{[bp.offset for bp in texture_breakpoints]}"
            )

    logger.info(
        f"AutoCut: {result.total_breakpoints} breakpoint(s) across "
        f"{len(result.breakpoints)}/{len(contig_order)} contigs"
    )
    return result

# HiCWeaver v0.1.0
# Any usage is subject to this software's license.
