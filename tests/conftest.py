#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HiCWeaver v0.1.0

Pytest configuration and shared fixtures.

Author: HiCWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import pytest
from pathlib import Path
import tempfile
import shutil

import numpy as np

from hicweaver.curation_core.data_structures import Contig


def layout_contigs(widths, scaffold_ids=None):
    """Contigs laid end to end in texture pixels, one per width."""
    contigs = []
    start = 0
    for idx, width in enumerate(widths):
        contigs.append(Contig(
            name=f"ctg{idx}",
            length=width * 1000,
            pixel_start=start,
            pixel_end=start + width,
            scaffold_id=scaffold_ids[idx] if scaffold_ids else None,
        ))
        start += width
    return contigs


def chromosome_map(num_chromosomes, contigs_per_chromosome, width):
    """
    Contact map of chromosomes laid out contiguously with 1/(1+d) decay.

    Contigs of the same chromosome are adjacent and correctly oriented;
    there is no signal between chromosomes.

    Returns:
        (matrix, contigs, chromosome_of) where chromosome_of maps contig
        index to its chromosome
    """
    chrom_len = contigs_per_chromosome * width
    size = num_chromosomes * chrom_len
    pos = np.arange(size)
    dist = np.abs(pos[:, None] - pos[None, :])
    same_chrom = (pos[:, None] // chrom_len) == (pos[None, :] // chrom_len)
    matrix = np.where(same_chrom, 1.0 / (1.0 + dist), 0.0)

    contigs = layout_contigs([width] * (num_chromosomes * contigs_per_chromosome))
    chromosome_of = [idx // contigs_per_chromosome for idx in range(len(contigs))]
    return matrix, contigs, chromosome_of


def corner_linked_map(width=30):
    """
    Three contigs of equal width with intra-contig decay 2/sqrt(d).

    Contigs 0 and 1 share a head-to-tail corner signal with the same decay
    (HH adjacency); contig 2 has no inter-contig signal.
    """
    size = 3 * width
    matrix = np.zeros((size, size))
    pos = np.arange(width)
    dist = np.abs(pos[:, None] - pos[None, :]).astype(float)
    intra = np.where(dist > 0, 2.0 / np.sqrt(np.maximum(dist, 1.0)), 2.0)
    for k in range(3):
        matrix[k * width:(k + 1) * width, k * width:(k + 1) * width] = intra

    # Corner distance from (width-1, width): tail of contig 0 to head of contig 1
    rows = np.arange(width)[:, None]
    cols = np.arange(width, 2 * width)[None, :]
    corner = (width - 1 - rows) + (cols - width)
    inter = np.where(corner > 0, 2.0 / np.sqrt(np.maximum(corner, 1)), 2.0)
    matrix[:width, width:2 * width] = inter
    matrix[width:2 * width, :width] = inter.T

    return matrix, layout_contigs([width] * 3)


@pytest.fixture
def temp_output_dir():
    """Create temporary output directory for tests."""
    temp_dir = tempfile.mkdtemp(prefix="hicweaver_test_")
    yield Path(temp_dir)
    # Cleanup after test
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def corner_linked():
    """Two HH-linked contigs plus an unrelated third (map, contigs)."""
    return corner_linked_map()


@pytest.fixture
def two_chromosomes():
    """Two chromosomes of six 10-pixel contigs each."""
    return chromosome_map(2, 6, 10)


@pytest.fixture
def gapped_contig_map():
    """
    One 128-pixel contig whose rows and columns 60-69 carry no signal.

    Models two sequences joined by mistake: the diagonal band collapses
    across the junction.
    """
    size = 128
    pos = np.arange(size)
    dist = np.abs(pos[:, None] - pos[None, :])
    matrix = np.where(dist <= 8, 1.0, 0.0)
    matrix[60:70, :] = 0.0
    matrix[:, 60:70] = 0.0
    return matrix


@pytest.fixture
def sample_contig_tsv(temp_output_dir):
    """Contig table for the two-chromosome map, with scaffold ids."""
    path = temp_output_dir / "contigs.tsv"
    lines = ["name\tlength\tpixel_start\tpixel_end\tinverted\tscaffold_id"]
    for idx in range(12):
        lines.append(f"ctg{idx}\t{(idx + 1) * 1000}\t{idx * 10}\t{(idx + 1) * 10}\t0\t{idx // 6}")
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def sample_contact_map_npy(temp_output_dir, two_chromosomes):
    """The two-chromosome map saved as .npy."""
    matrix, _, _ = two_chromosomes
    path = temp_output_dir / "overview.npy"
    np.save(path, matrix)
    return path

# HiCWeaver v0.1.0
# Any usage is subject to this software's license.
