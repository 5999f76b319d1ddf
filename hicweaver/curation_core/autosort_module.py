#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
HiCWeaver v0.1.0

AutoSort: Hi-C Contig Ordering & Orientation Engine.

Proposes chromosome-level contig chains from the overview contact map:
1. Intra-contig diagonal profile as the normalisation baseline
2. Link scoring of every contig pair in all four orientations (HH/HT/TH/TT)
   from the anti-diagonal corner of their inter-contig block
3. Adaptive link threshold (85th percentile, capped by a hard threshold)
4. Greedy Union-Find chaining of contigs, strongest links first
5. Hierarchical (agglomerative) merge of whole chains with a safety guard
   against joining unrelated chromosomes

Pure algorithm: no state is kept between calls and inputs are not mutated.

Author: HiCWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import logging
import math
import warnings
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .data_structures import (
    ORIENTATIONS,
    AutoSortResult,
    Chain,
    ChainEntry,
    Contig,
    ContigLink,
    ContigRange,
    Orientation,
    params_from_dict,
    reverse_chain,
)
from ..curation_utils.contig_ranges import build_contig_ranges
from ..curation_utils.diagonal_profile import as_square_matrix, compute_intra_diagonal_profile

logger = logging.getLogger(__name__)

# Assemblies with fewer contigs are returned unsorted by autosort()
MIN_CONTIGS_FOR_SORT = 60

# Ranges narrower than this carry too little signal to orient
MIN_SCORING_WIDTH = 4

# Fraction of the ranked link list above the adaptive threshold
LINK_PERCENTILE_FRACTION = 0.15

# Chain merge safety guard and adaptive threshold factors
SAFETY_GUARD_RATIO = 0.5
UNION_FIND_THRESHOLD_FACTOR = 0.3


# ============================================================================
#                         PARAMETERS
# ============================================================================

@dataclass
class AutoSortParams:
    """
    Tunable AutoSort parameters.

    Attributes:
        max_diagonal_distance: Largest band distance sampled for scoring
        signal_cutoff: Minimum best-orientation score for a link to be kept
        hard_threshold: Ceiling on the adaptive chaining threshold
        min_chain_size: Chains smaller than this are merge candidates in the
            legacy small-chain merge
        merge_threshold: Floor of the hierarchical merge threshold
    """
    max_diagonal_distance: int = 50
    signal_cutoff: float = 0.05
    hard_threshold: float = 0.2
    min_chain_size: int = 3
    merge_threshold: float = 0.05

    @classmethod
    def from_dict(cls, overrides: Optional[Dict[str, Any]] = None) -> "AutoSortParams":
        """Build parameters from a partial mapping; missing fields keep defaults."""
        return params_from_dict(cls, overrides)


# ============================================================================
#                         LINK SCORING
# ============================================================================

@lru_cache(maxsize=64)
def _band_offsets(max_d: int) -> Tuple[np.ndarray, np.ndarray]:
    """(d, k) pairs for every band 1..max_d and every k in [0, d)."""
    if max_d < 1:
        empty = np.zeros(0, dtype=np.int64)
        empty.setflags(write=False)
        return empty, empty
    d_values = np.repeat(np.arange(1, max_d + 1, dtype=np.int64), np.arange(1, max_d + 1))
    starts = np.repeat(np.cumsum(np.arange(0, max_d, dtype=np.int64)), np.arange(1, max_d + 1))
    k_values = np.arange(d_values.size, dtype=np.int64) - starts
    # Shared between callers through the cache
    d_values.setflags(write=False)
    k_values.setflags(write=False)
    return d_values, k_values


def compute_link_score(
    contact_map,
    range_i: ContigRange,
    range_j: ContigRange,
    invert_i: bool,
    invert_j: bool,
    profile: np.ndarray,
    max_distance: int,
) -> float:
    """
    Score one contig pair for a single orientation hypothesis.

    Anti-diagonal bands are sampled at increasing distance ``d`` from the
    corner where the two abutting contig ends meet. Each band is compared
    with the expected intensity ``profile[d]``::

        band_score = clamp(1 - |observed - expected| / expected, 0, 1)

    and bands are combined with ``1 / sqrt(d)`` weights.

    Args:
        contact_map: Overview contact map (flat or 2-D)
        range_i: Range of contig I
        range_j: Range of contig J
        invert_i: Whether I is reversed (its head abuts J)
        invert_j: Whether J is reversed (its tail abuts I)
        profile: Intra-contig diagonal profile
        max_distance: Largest band distance to sample

    Returns:
        Score in [0.0, 1.0]; exactly 0.0 when either range is narrower than
        four pixels
    """
    i_len = range_i.width
    j_len = range_j.width
    if i_len < MIN_SCORING_WIDTH or j_len < MIN_SCORING_WIDTH:
        return 0.0

    matrix = as_square_matrix(contact_map)
    size = matrix.shape[0]
    profile = np.asarray(profile, dtype=np.float64)

    # Corner anchors: the abutting end of each contig
    anchor_i = range_i.start if invert_i else range_i.end - 1
    anchor_j = range_j.end - 1 if invert_j else range_j.start
    row_step = 1 if invert_i else -1
    col_step = -1 if invert_j else 1

    max_d = min(int(max_distance), i_len, j_len)
    d_values, k_values = _band_offsets(max_d)
    if d_values.size == 0:
        return 0.0

    # Two symmetric samples per (d, k)
    rows = np.concatenate((anchor_i + row_step * (d_values - k_values), anchor_i + row_step * k_values))
    cols = np.concatenate((anchor_j + col_step * k_values, anchor_j + col_step * (d_values - k_values)))
    bands = np.concatenate((d_values, d_values))

    valid = (rows >= 0) & (rows < size) & (cols >= 0) & (cols < size)
    if not valid.any():
        return 0.0

    sums = np.bincount(bands[valid], weights=matrix[rows[valid], cols[valid]], minlength=max_d + 1)
    counts = np.bincount(bands[valid], minlength=max_d + 1)

    distances = np.arange(max_d + 1)
    expected = np.zeros(max_d + 1, dtype=np.float64)
    in_profile = min(max_d + 1, profile.size)
    expected[:in_profile] = profile[:in_profile]

    usable = (distances >= 1) & (counts > 0) & (expected > 0)
    if not usable.any():
        return 0.0

    observed = sums[usable] / counts[usable]
    band_scores = np.clip(1.0 - np.abs(observed - expected[usable]) / expected[usable], 0.0, 1.0)
    weights = 1.0 / np.sqrt(distances[usable])

    total_weight = float(weights.sum())
    if total_weight <= 0:
        return 0.0
    return float(np.dot(band_scores, weights) / total_weight)


def score_contig_pair(
    contact_map,
    range_i: ContigRange,
    range_j: ContigRange,
    profile: np.ndarray,
    max_distance: int,
) -> Tuple[float, float, float, float]:
    """Scores for all four orientations, in HH, HT, TH, TT order."""
    return tuple(
        compute_link_score(
            contact_map, range_i, range_j,
            orientation.inverts_first, orientation.inverts_second,
            profile, max_distance,
        )
        for orientation in ORIENTATIONS
    )


def score_contig_ranges(
    contact_map,
    ranges: Sequence[ContigRange],
    max_distance: int,
    signal_cutoff: float,
) -> List[ContigLink]:
    """
    Score every pair of ranges and keep links above the signal cutoff.

    Link indices refer to positions in ``ranges``. The returned list is
    sorted by score, highest first; ties keep pair order.
    """
    matrix = as_square_matrix(contact_map)
    profile = compute_intra_diagonal_profile(matrix, ranges, max_distance)

    links: List[ContigLink] = []
    for i in range(len(ranges)):
        for j in range(i + 1, len(ranges)):
            scores = score_contig_pair(matrix, ranges[i], ranges[j], profile, max_distance)
            best_idx = int(np.argmax(scores))
            best_score = scores[best_idx]
            if best_score >= signal_cutoff:
                links.append(ContigLink(
                    i=i,
                    j=j,
                    score=best_score,
                    orientation=ORIENTATIONS[best_idx],
                    all_scores=scores,
                ))

    links.sort(key=lambda link: link.score, reverse=True)
    logger.debug(
        f"Scored {len(ranges) * (len(ranges) - 1) // 2} contig pairs; "
        f"{len(links)} links above cutoff {signal_cutoff}"
    )
    return links


def compute_all_link_scores(
    contact_map,
    contigs: Sequence[Contig],
    contig_order: Sequence[int],
    texture_size: int,
    params: Optional[AutoSortParams] = None,
) -> List[ContigLink]:
    """
    Pairwise link scores for the current contig order.

    Returns:
        ContigLink list sorted by score descending; ``i``/``j`` are order
        indices
    """
    p = params or AutoSortParams()
    matrix = as_square_matrix(contact_map)
    ranges = build_contig_ranges(contigs, contig_order, texture_size, matrix.shape[0])
    return score_contig_ranges(matrix, ranges, p.max_diagonal_distance, p.signal_cutoff)


def derive_link_threshold(links: Sequence[ContigLink], hard_threshold: float) -> float:
    """
    Adaptive chaining threshold.

    The 85th-percentile score of the (descending) link list, capped at
    ``hard_threshold``; ``hard_threshold`` itself when there are no links.
    """
    if not links:
        return hard_threshold
    idx = int(math.floor(len(links) * LINK_PERCENTILE_FRACTION))
    p85 = links[idx].score if idx < len(links) else 0.0
    return min(p85, hard_threshold)


# ============================================================================
#                         CHAIN BUILDING
# ============================================================================

@dataclass
class ChainNode:
    """
    Chain membership record for one contig.

    Attributes:
        chain_id: Slot of the chain holding the contig
        is_head: Contig is the first entry of its chain
        is_tail: Contig is the last entry of its chain
    """
    chain_id: int
    is_head: bool = True
    is_tail: bool = True

    @property
    def at_endpoint(self) -> bool:
        return self.is_head or self.is_tail


def join_oriented_chains(
    chain_i: Chain,
    chain_j: Chain,
    i_is_head: bool,
    i_is_tail: bool,
    j_is_head: bool,
    j_is_tail: bool,
    orientation: Orientation,
) -> Chain:
    """
    Concatenate two chains so that contigs I and J become adjacent.

    HH/HT need I at the tail of its chain, TH/TT at the head; HH/TH need J at
    the head of its chain, HT/TT at the tail. Chains are reversed (with all
    orientations toggled) until those ends face each other, and the chain
    holding I is placed first.
    """
    if orientation.first_at_tail:
        if i_is_head and not i_is_tail:
            chain_i = reverse_chain(chain_i)
    elif i_is_tail and not i_is_head:
        chain_i = reverse_chain(chain_i)

    if orientation.second_at_head:
        if j_is_tail and not j_is_head:
            chain_j = reverse_chain(chain_j)
    elif j_is_head and not j_is_tail:
        chain_j = reverse_chain(chain_j)

    # I must close the left block and J must open the right one
    if not orientation.first_at_tail:
        chain_i = reverse_chain(chain_i)
    if not orientation.second_at_head:
        chain_j = reverse_chain(chain_j)

    return list(chain_i) + list(chain_j)


def _sorted_chains(chains: Sequence[Chain]) -> List[Chain]:
    return sorted((c for c in chains if c), key=len, reverse=True)


def union_find_sort(
    links: Sequence[ContigLink],
    num_contigs: int,
    threshold: float,
) -> AutoSortResult:
    """
    Greedy Union-Find chaining.

    Every contig starts as its own chain. Links are consumed in descending
    score order until the first one below ``threshold``; a link joins two
    chains only when both contigs sit at an endpoint of different chains.

    Args:
        links: Links sorted by score descending
        num_contigs: Number of contigs (order indices 0..n-1)
        threshold: Minimum score for a link to be consumed

    Returns:
        AutoSortResult with chains sorted longest first
    """
    chains: List[Chain] = [[ChainEntry(idx, False)] for idx in range(num_contigs)]
    nodes: List[ChainNode] = [ChainNode(chain_id=idx) for idx in range(num_contigs)]
    joins = 0

    for link in links:
        if link.score < threshold:
            break
        if not (0 <= link.i < num_contigs and 0 <= link.j < num_contigs):
            continue

        node_i = nodes[link.i]
        node_j = nodes[link.j]
        if node_i.chain_id == node_j.chain_id:
            continue
        if not (node_i.at_endpoint and node_j.at_endpoint):
            continue

        chain_i = chains[node_i.chain_id]
        chain_j = chains[node_j.chain_id]
        if not chain_i or not chain_j:
            continue

        merged = join_oriented_chains(
            chain_i, chain_j,
            node_i.is_head, node_i.is_tail,
            node_j.is_head, node_j.is_tail,
            link.orientation,
        )
        new_chain_id = node_i.chain_id
        chains[new_chain_id] = merged
        chains[node_j.chain_id] = []

        last = len(merged) - 1
        for pos, entry in enumerate(merged):
            nodes[entry.order_index] = ChainNode(
                chain_id=new_chain_id,
                is_head=pos == 0,
                is_tail=pos == last,
            )
        joins += 1

    result_chains = _sorted_chains(chains)
    logger.debug(
        f"Union-Find: {joins} joins at threshold {threshold:.3f}, "
        f"{len(result_chains)} chains"
    )
    return AutoSortResult(chains=result_chains, links=list(links), threshold=threshold)


# ============================================================================
#                         CHAIN MERGING
# ============================================================================

def merge_small_chains(
    result: AutoSortResult,
    links: Sequence[ContigLink],
    min_chain_size: int = 3,
    merge_threshold: float = 0.05,
) -> AutoSortResult:
    """
    Legacy second-pass merge of small chains.

    Only merges chain pairs where at least one chain has fewer than
    ``min_chain_size`` contigs, appending the smaller chain to the larger
    without reorientation.

    .. deprecated:: 0.1.0
        Use :func:`hierarchical_chain_merge`.
    """
    warnings.warn(
        "merge_small_chains is deprecated; use hierarchical_chain_merge",
        DeprecationWarning,
        stacklevel=2,
    )
    chains: List[Chain] = [list(c) for c in result.chains]
    chain_of: Dict[int, int] = {
        entry.order_index: ci for ci, chain in enumerate(chains) for entry in chain
    }

    for link in links:
        if link.score < merge_threshold:
            break
        ci_a = chain_of.get(link.i)
        ci_b = chain_of.get(link.j)
        if ci_a is None or ci_b is None or ci_a == ci_b:
            continue
        if len(chains[ci_a]) >= min_chain_size and len(chains[ci_b]) >= min_chain_size:
            continue

        keep_idx, merge_idx = (ci_a, ci_b) if len(chains[ci_a]) >= len(chains[ci_b]) else (ci_b, ci_a)
        for entry in chains[merge_idx]:
            chains[keep_idx].append(entry)
            chain_of[entry.order_index] = keep_idx
        chains[merge_idx] = []

    return AutoSortResult(
        chains=_sorted_chains(chains),
        links=result.links,
        threshold=result.threshold,
    )


def compute_intra_chain_score(chain: Chain, links: Sequence[ContigLink]) -> float:
    """Mean score of links joining two members of ``chain``; 0.0 when none."""
    members = {entry.order_index for entry in chain}
    scores = [link.score for link in links if link.i in members and link.j in members]
    return sum(scores) / len(scores) if scores else 0.0


@dataclass
class InterChainLink:
    """Best link between two distinct chains."""
    chain_idx_a: int
    chain_idx_b: int
    score: float
    best_link: ContigLink


def _find_best_merge(
    chains: List[Chain],
    chain_of: Dict[int, int],
    links: Sequence[ContigLink],
    effective_threshold: float,
) -> Optional[InterChainLink]:
    """Highest-scoring chain pair that clears the threshold and the safety guard."""
    pair_best: Dict[Tuple[int, int], InterChainLink] = {}
    for link in links:
        ci_a = chain_of.get(link.i)
        ci_b = chain_of.get(link.j)
        if ci_a is None or ci_b is None or ci_a == ci_b:
            continue
        key = (min(ci_a, ci_b), max(ci_a, ci_b))
        existing = pair_best.get(key)
        if existing is None or link.score > existing.score:
            pair_best[key] = InterChainLink(ci_a, ci_b, link.score, link)

    intra_cache: Dict[int, float] = {}

    def intra(ci: int) -> float:
        if ci not in intra_cache:
            intra_cache[ci] = compute_intra_chain_score(chains[ci], links)
        return intra_cache[ci]

    best: Optional[InterChainLink] = None
    for candidate in pair_best.values():
        if candidate.score < effective_threshold:
            continue

        chain_a = chains[candidate.chain_idx_a]
        chain_b = chains[candidate.chain_idx_b]
        # Singletons have no intra-chain links to compare against
        if len(chain_a) >= 2 and len(chain_b) >= 2:
            min_intra = min(intra(candidate.chain_idx_a), intra(candidate.chain_idx_b))
            if min_intra > 0 and candidate.score < SAFETY_GUARD_RATIO * min_intra:
                logger.debug(
                    f"Safety guard blocked merge of chains {candidate.chain_idx_a}/"
                    f"{candidate.chain_idx_b}: {candidate.score:.3f} < "
                    f"{SAFETY_GUARD_RATIO} x {min_intra:.3f}"
                )
                continue

        if best is None or candidate.score > best.score:
            best = candidate

    return best


def hierarchical_chain_merge(
    result: AutoSortResult,
    links: Sequence[ContigLink],
    merge_threshold: float = 0.05,
    union_find_threshold: float = 0.2,
) -> AutoSortResult:
    """
    Agglomerative chain merge.

    Repeatedly merges the chain pair with the strongest inter-chain link
    until no pair clears both the adaptive threshold
    ``max(merge_threshold, union_find_threshold * 0.3)`` and the safety guard.
    The guard applies when both chains have at least two contigs: the
    inter-chain score must reach half of the lower mean intra-chain score.

    Merges are orientation-aware when the linking contigs are chain
    endpoints; otherwise the smaller chain is appended to the larger. The
    larger chain keeps its slot.

    Args:
        result: Initial result from :func:`union_find_sort`
        links: All links, sorted by score descending
        merge_threshold: Floor of the merge threshold
        union_find_threshold: Threshold used by the chain builder

    Returns:
        AutoSortResult with merged chains sorted longest first
    """
    effective_threshold = max(merge_threshold, union_find_threshold * UNION_FIND_THRESHOLD_FACTOR)
    chains: List[Chain] = [list(c) for c in result.chains if c]
    merges = 0

    while True:
        chain_of = {entry.order_index: ci for ci, chain in enumerate(chains) for entry in chain}
        best = _find_best_merge(chains, chain_of, links, effective_threshold)
        if best is None:
            break

        chain_a = chains[best.chain_idx_a]
        chain_b = chains[best.chain_idx_b]
        link = best.best_link

        if len(chain_a) >= len(chain_b):
            keep_idx, merge_idx = best.chain_idx_a, best.chain_idx_b
        else:
            keep_idx, merge_idx = best.chain_idx_b, best.chain_idx_a
        keep_chain = chains[keep_idx]
        merge_chain = chains[merge_idx]
        keep_is_i = chain_of[link.i] == keep_idx

        i_chain = keep_chain if keep_is_i else merge_chain
        j_chain = merge_chain if keep_is_i else keep_chain
        i_pos = next(pos for pos, e in enumerate(i_chain) if e.order_index == link.i)
        j_pos = next(pos for pos, e in enumerate(j_chain) if e.order_index == link.j)

        i_is_head, i_is_tail = i_pos == 0, i_pos == len(i_chain) - 1
        j_is_head, j_is_tail = j_pos == 0, j_pos == len(j_chain) - 1

        if (i_is_head or i_is_tail) and (j_is_head or j_is_tail):
            merged = join_oriented_chains(
                i_chain, j_chain, i_is_head, i_is_tail, j_is_head, j_is_tail, link.orientation
            )
        else:
            merged = keep_chain + merge_chain

        chains[keep_idx] = merged
        chains[merge_idx] = []
        chains = [c for c in chains if c]
        merges += 1

    logger.debug(
        f"Hierarchical merge: {merges} merges at threshold {effective_threshold:.3f}, "
        f"{len(chains)} chains remain"
    )
    return AutoSortResult(
        chains=_sorted_chains(chains),
        links=result.links,
        threshold=result.threshold,
    )


# ============================================================================
#                         TOP-LEVEL AUTOSORT
# ============================================================================

def sort_contig_ranges(
    contact_map,
    ranges: Sequence[ContigRange],
    params: Optional[AutoSortParams] = None,
) -> AutoSortResult:
    """
    Link scoring, threshold, Union-Find chaining and hierarchical merge over
    explicit ranges. Chain entries refer to positions in ``ranges``.
    """
    p = params or AutoSortParams()
    links = score_contig_ranges(contact_map, ranges, p.max_diagonal_distance, p.signal_cutoff)
    threshold = derive_link_threshold(links, p.hard_threshold)

    initial = union_find_sort(links, len(ranges), threshold)
    merged = hierarchical_chain_merge(initial, links, p.merge_threshold, threshold)

    logger.info(
        f"AutoSort: {len(ranges)} contigs, {len(links)} links, threshold {threshold:.3f}, "
        f"{len(initial.chains)} chains after chaining, {len(merged.chains)} after merge"
    )
    return merged


def autosort_core(
    contact_map,
    contigs: Sequence[Contig],
    contig_order: Sequence[int],
    texture_size: int,
    params: Optional[AutoSortParams] = None,
) -> AutoSortResult:
    """
    Core AutoSort without the minimum contig count guard.

    Usable on per-scaffold subsets of any size.
    """
    matrix = as_square_matrix(contact_map)
    ranges = build_contig_ranges(contigs, contig_order, texture_size, matrix.shape[0])
    return sort_contig_ranges(matrix, ranges, params)


def autosort(
    contact_map,
    contigs: Sequence[Contig],
    contig_order: Sequence[int],
    texture_size: int,
    params: Optional[AutoSortParams] = None,
) -> AutoSortResult:
    """
    Propose a contig ordering and orientation from Hi-C link scores.

    Assemblies with fewer than ``MIN_CONTIGS_FOR_SORT`` contigs are returned
    as one singleton chain per contig with no links and a zero threshold.
    Use :func:`autosort_core` to sort small subsets anyway.

    Args:
        contact_map: Overview contact map (flat or 2-D, symmetric)
        contigs: Full contig array
        contig_order: Contig indices in display order
        texture_size: Full-resolution pixel span of the map
        params: AutoSort parameters (defaults when None)

    Returns:
        AutoSortResult; chain entries refer to order indices
    """
    if len(contig_order) < MIN_CONTIGS_FOR_SORT:
        logger.info(
            f"AutoSort skipped: {len(contig_order)} contigs < {MIN_CONTIGS_FOR_SORT}; "
            "returning the current order as singleton chains"
        )
        return AutoSortResult(
            chains=[[ChainEntry(idx, False)] for idx in range(len(contig_order))],
            links=[],
            threshold=0.0,
        )

    return autosort_core(contact_map, contigs, contig_order, texture_size, params)

# HiCWeaver v0.1.0
# Any usage is subject to this software's license.
