#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HiCWeaver v0.1.0

Curation core: AutoCut breakpoint detection and AutoSort contig chaining.

Module structure (engines are imported from their modules):
1. data_structures.py - Contigs, ranges, links, chains and results
2. autocut_module.py - Misassembly breakpoint detection
3. autosort_module.py - Link scoring, Union-Find chaining, hierarchical merge

Author: HiCWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from .data_structures import (
    ORIENTATIONS,
    AutoCutResult,
    AutoSortResult,
    Breakpoint,
    Chain,
    ChainEntry,
    Contig,
    ContigLink,
    ContigRange,
    Orientation,
    reverse_chain,
)

__all__ = [
    "ORIENTATIONS",
    "AutoCutResult",
    "AutoSortResult",
    "Breakpoint",
    "Chain",
    "ChainEntry",
    "Contig",
    "ContigLink",
    "ContigRange",
    "Orientation",
    "reverse_chain",
]

# HiCWeaver v0.1.0
# Any usage is subject to this software's license.
