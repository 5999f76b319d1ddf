#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HiCWeaver v0.1.0

Curation utilities: contig range layout and diagonal signal profiling.
Scaffold-aware sorting lives in scaffold_sort.py and is imported directly.

Author: HiCWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from .contig_ranges import build_contig_ranges, round_half_up, subset_ranges
from .diagonal_profile import (
    as_square_matrix,
    compute_diagonal_density,
    compute_intra_diagonal_profile,
)

__all__ = [
    "build_contig_ranges",
    "round_half_up",
    "subset_ranges",
    "as_square_matrix",
    "compute_diagonal_density",
    "compute_intra_diagonal_profile",
]

# HiCWeaver v0.1.0
# Any usage is subject to this software's license.
