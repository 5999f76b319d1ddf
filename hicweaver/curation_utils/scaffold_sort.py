#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HiCWeaver v0.1.0

Scaffold-aware AutoSort.

Sorts the contigs of each scaffold independently. Every group is scored on
the ranges of the global layout so contigs keep their true position on the
contact map; chain entries are remapped back to global order indices and
each sorted group refills its own slots in the proposed order.

Author: HiCWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..curation_core.autosort_module import AutoSortParams, autosort, sort_contig_ranges
from ..curation_core.data_structures import AutoSortResult, ChainEntry, Contig, ContigLink
from .contig_ranges import build_contig_ranges, subset_ranges
from .diagonal_profile import as_square_matrix

logger = logging.getLogger(__name__)

# Groups smaller than this are left in place
MIN_GROUP_SIZE = 3

# Group key for contigs without a scaffold
UNSCAFFOLDED = None

# Fewer distinct scaffolds fall back to a whole-assembly sort
MIN_SCAFFOLDS_FOR_GROUPING = 2


@dataclass
class ScaffoldSortResult:
    """
    Outcome of a scaffold-aware sort.

    Attributes:
        group_results: AutoSortResult per scaffold id (``None`` for
            unscaffolded contigs), with global order indices
        proposed_order: Full proposed order; unsorted groups keep their
            entries unchanged
        skipped_groups: Scaffold ids left alone for having too few contigs
        global_result: Whole-assembly AutoSort result when there were too
            few scaffolds to sort per group; None otherwise
    """
    group_results: Dict[Optional[int], AutoSortResult] = field(default_factory=dict)
    proposed_order: List[ChainEntry] = field(default_factory=list)
    skipped_groups: List[Optional[int]] = field(default_factory=list)
    global_result: Optional[AutoSortResult] = None


def group_by_scaffold(
    contigs: Sequence[Contig],
    contig_order: Sequence[int],
) -> Dict[Optional[int], List[int]]:
    """Order indices grouped by scaffold id, in first-seen order."""
    groups: Dict[Optional[int], List[int]] = {}
    for order_index, contig_id in enumerate(contig_order):
        scaffold_id = contigs[contig_id].scaffold_id
        groups.setdefault(scaffold_id, []).append(order_index)
    return groups


def _to_global(result: AutoSortResult, members: Sequence[int]) -> AutoSortResult:
    chains = [
        [ChainEntry(members[entry.order_index], entry.inverted) for entry in chain]
        for chain in result.chains
    ]
    links = [
        ContigLink(
            i=members[link.i],
            j=members[link.j],
            score=link.score,
            orientation=link.orientation,
            all_scores=link.all_scores,
        )
        for link in result.links
    ]
    return AutoSortResult(chains=chains, links=links, threshold=result.threshold)


def scaffold_aware_sort(
    contact_map,
    contigs: Sequence[Contig],
    contig_order: Sequence[int],
    texture_size: int,
    params: Optional[AutoSortParams] = None,
) -> ScaffoldSortResult:
    """
    Run AutoSort separately within each scaffold.

    With fewer than two distinct scaffold ids the whole assembly is sorted
    by :func:`autosort` instead, including its minimum contig count guard;
    the outcome is stored in ``global_result``.

    Args:
        contact_map: Overview contact map (flat or 2-D, symmetric)
        contigs: Full contig array
        contig_order: Contig indices in display order
        texture_size: Full-resolution pixel span of the map
        params: AutoSort parameters (defaults when None)

    Returns:
        ScaffoldSortResult with chains in global order indices
    """
    matrix = as_square_matrix(contact_map)
    groups = group_by_scaffold(contigs, contig_order)

    num_scaffolds = sum(1 for scaffold_id in groups if scaffold_id is not UNSCAFFOLDED)
    if num_scaffolds < MIN_SCAFFOLDS_FOR_GROUPING:
        logger.info(
            f"Scaffold-aware sort: {num_scaffolds} scaffold(s) < {MIN_SCAFFOLDS_FOR_GROUPING}; "
            "sorting the whole assembly"
        )
        global_result = autosort(matrix, contigs, contig_order, texture_size, params)
        return ScaffoldSortResult(
            proposed_order=global_result.proposed_order(),
            global_result=global_result,
        )

    global_ranges = build_contig_ranges(contigs, contig_order, texture_size, matrix.shape[0])
    result = ScaffoldSortResult()
    # Untouched positions keep their current display orientation
    proposed: List[ChainEntry] = [ChainEntry(idx, False) for idx in range(len(contig_order))]

    for scaffold_id, members in groups.items():
        label = "unscaffolded" if scaffold_id is UNSCAFFOLDED else f"scaffold {scaffold_id}"
        if len(members) < MIN_GROUP_SIZE:
            logger.debug(f"Skipping {label}: {len(members)} contig(s) < {MIN_GROUP_SIZE}")
            result.skipped_groups.append(scaffold_id)
            continue

        local = sort_contig_ranges(matrix, subset_ranges(global_ranges, members), params)
        group_result = _to_global(local, members)
        result.group_results[scaffold_id] = group_result

        # Sorted group refills its own slots, which stay in ascending order
        for slot, entry in zip(members, group_result.proposed_order()):
            proposed[slot] = entry
        logger.debug(f"Sorted {label}: {len(members)} contigs into {len(group_result.chains)} chain(s)")

    result.proposed_order = proposed
    logger.info(
        f"Scaffold-aware sort: {len(result.group_results)} group(s) sorted, "
        f"{len(result.skipped_groups)} skipped"
    )
    return result

# HiCWeaver v0.1.0
# Any usage is subject to this software's license.
