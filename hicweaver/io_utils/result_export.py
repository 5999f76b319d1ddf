#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HiCWeaver v0.1.0

Result Export: write AutoCut breakpoints and AutoSort chains as JSON or TSV.

Author: HiCWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any, Sequence

from ..curation_core.data_structures import (
    ORIENTATIONS,
    AutoCutResult,
    AutoSortResult,
    ChainEntry,
    Contig,
    ContigLink,
)
from ..curation_utils.scaffold_sort import ScaffoldSortResult

logger = logging.getLogger(__name__)


def _contig_name(contigs: Sequence[Contig], contig_order: Sequence[int], order_index: int) -> str:
    return contigs[contig_order[order_index]].name


# ============================================================================
#                           DICT CONVERSION
# ============================================================================

def autocut_result_to_dict(
    result: AutoCutResult,
    contigs: Sequence[Contig],
    contig_order: Sequence[int],
) -> dict[str, Any]:
    """
    JSON-ready view of an AutoCut result.

    Each breakpoint carries its offset within the contig and the absolute
    texture pixel ``pixel_start + offset``.
    """
    entries = []
    for order_index in sorted(result.breakpoints):
        contig = contigs[contig_order[order_index]]
        entries.append({
            'order_index': order_index,
            'contig': contig.name,
            'breakpoints': [
                {
                    'offset': bp.offset,
                    'texture_pixel': contig.pixel_start + bp.offset,
                    'confidence': round(bp.confidence, 6),
                }
                for bp in result.breakpoints[order_index]
            ],
        })
    return {
        'total_breakpoints': result.total_breakpoints,
        'contigs': entries,
    }


def _entry_to_dict(entry: ChainEntry, contigs: Sequence[Contig], contig_order: Sequence[int]) -> dict[str, Any]:
    return {
        'order_index': entry.order_index,
        'contig': _contig_name(contigs, contig_order, entry.order_index),
        'inverted': entry.inverted,
    }


def _link_to_dict(link: ContigLink) -> dict[str, Any]:
    return {
        'i': link.i,
        'j': link.j,
        'score': round(link.score, 6),
        'orientation': link.orientation.value,
        'all_scores': {
            orientation.value: round(score, 6)
            for orientation, score in zip(ORIENTATIONS, link.all_scores)
        },
    }


def autosort_result_to_dict(
    result: AutoSortResult,
    contigs: Sequence[Contig],
    contig_order: Sequence[int],
    include_links: bool = True,
) -> dict[str, Any]:
    """JSON-ready view of an AutoSort result."""
    data: dict[str, Any] = {
        'threshold': round(result.threshold, 6),
        'num_chains': len(result.chains),
        'chains': [
            [_entry_to_dict(entry, contigs, contig_order) for entry in chain]
            for chain in result.chains
        ],
        'proposed_order': [
            _entry_to_dict(entry, contigs, contig_order) for entry in result.proposed_order()
        ],
    }
    if include_links:
        data['links'] = [_link_to_dict(link) for link in result.links]
    return data


def scaffold_sort_result_to_dict(
    result: ScaffoldSortResult,
    contigs: Sequence[Contig],
    contig_order: Sequence[int],
    include_links: bool = True,
) -> dict[str, Any]:
    """
    JSON-ready view of a scaffold-aware sort.

    A sort that fell back to the whole assembly is exported like a plain
    AutoSort result.
    """
    if result.global_result is not None:
        return autosort_result_to_dict(result.global_result, contigs, contig_order, include_links)
    return {
        'groups': [
            {
                'scaffold_id': scaffold_id,
                **autosort_result_to_dict(group, contigs, contig_order, include_links),
            }
            for scaffold_id, group in result.group_results.items()
        ],
        'skipped_groups': list(result.skipped_groups),
        'proposed_order': [
            _entry_to_dict(entry, contigs, contig_order) for entry in result.proposed_order
        ],
    }


# ============================================================================
#                           FILE EXPORT
# ============================================================================

def _write_json(data: dict[str, Any], output_path: Path, indent: int) -> None:
    with open(output_path, 'w') as f:
        json.dump(data, f, indent=indent)
        f.write('\n')


def export_autocut_json(
    result: AutoCutResult,
    contigs: Sequence[Contig],
    contig_order: Sequence[int],
    output_path: str | Path,
    indent: int = 2,
) -> dict[str, Any]:
    """
    Export AutoCut breakpoints to JSON.

    Returns:
        The exported dictionary
    """
    output_path = Path(output_path)
    data = autocut_result_to_dict(result, contigs, contig_order)
    _write_json(data, output_path, indent)
    logger.info(f"Exported {result.total_breakpoints} breakpoints to {output_path}")
    return data


def export_autocut_tsv(
    result: AutoCutResult,
    contigs: Sequence[Contig],
    contig_order: Sequence[int],
    output_path: str | Path,
) -> None:
    """
    Export AutoCut breakpoints to TSV, one breakpoint per line.

    Format: contig, order_index, offset, texture_pixel, confidence
    """
    output_path = Path(output_path)
    logger.info(f"Exporting {result.total_breakpoints} breakpoints to {output_path}")

    with open(output_path, 'w') as f:
        f.write("# AutoCut breakpoints\n")
        f.write("contig\torder_index\toffset\ttexture_pixel\tconfidence\n")

        for order_index in sorted(result.breakpoints):
            contig = contigs[contig_order[order_index]]
            for bp in result.breakpoints[order_index]:
                f.write(
                    f"{contig.name}\t{order_index}\t{bp.offset}\t"
                    f"{contig.pixel_start + bp.offset}\t{bp.confidence:.6f}\n"
                )


def export_autosort_json(
    result: AutoSortResult | ScaffoldSortResult,
    contigs: Sequence[Contig],
    contig_order: Sequence[int],
    output_path: str | Path,
    indent: int = 2,
    include_links: bool = True,
) -> dict[str, Any]:
    """
    Export AutoSort chains (and optionally links) to JSON.

    Accepts a plain AutoSortResult or a ScaffoldSortResult.

    Returns:
        The exported dictionary
    """
    output_path = Path(output_path)
    if isinstance(result, ScaffoldSortResult):
        data = scaffold_sort_result_to_dict(result, contigs, contig_order, include_links)
    else:
        data = autosort_result_to_dict(result, contigs, contig_order, include_links)
    _write_json(data, output_path, indent)
    logger.info(f"Exported AutoSort result to {output_path}")
    return data


def export_chains_tsv(
    result: AutoSortResult,
    contigs: Sequence[Contig],
    contig_order: Sequence[int],
    output_path: str | Path,
) -> None:
    """
    Export AutoSort chains to TSV.

    Format: chain_id, num_contigs, path
    where path is 'contigA+,contigB-,...' (``-`` marks an inverted entry).

    Example:
        >>> export_chains_tsv(result, contigs, order, 'chains.tsv')
    """
    output_path = Path(output_path)
    logger.info(f"Exporting {len(result.chains)} chains to {output_path}")

    with open(output_path, 'w') as f:
        f.write("# AutoSort chains\n")
        f.write(f"# Link threshold: {result.threshold:.6f}\n")
        f.write("chain_id\tnum_contigs\tpath\n")

        for chain_id, chain in enumerate(result.chains, start=1):
            path_str = ','.join(
                f"{_contig_name(contigs, contig_order, entry.order_index)}{'-' if entry.inverted else '+'}"
                for entry in chain
            )
            f.write(f"chain_{chain_id}\t{len(chain)}\t{path_str}\n")

# HiCWeaver v0.1.0
# Any usage is subject to this software's license.
