#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HiCWeaver v0.1.0

Core data structures shared by AutoCut and AutoSort.

Contigs and contig ranges describe the layout of the assembly on the
overview contact map; links, chains and breakpoints are the outputs of the
curation engines. Every structure is produced fresh per invocation and the
engines never mutate their inputs.

Author: HiCWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import logging
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


# ============================================================================
#                         ASSEMBLY LAYOUT
# ============================================================================

@dataclass(frozen=True)
class Contig:
    """
    A contig as laid out in the full-resolution texture.

    Attributes:
        name: Contig name
        length: Length in base pairs
        pixel_start: First texture pixel (inclusive)
        pixel_end: Last texture pixel (exclusive)
        inverted: Whether the contig is currently displayed reversed
        scaffold_id: Scaffold the contig belongs to, if any
    """
    name: str
    length: int
    pixel_start: int
    pixel_end: int
    inverted: bool = False
    scaffold_id: Optional[int] = None

    @property
    def pixel_length(self) -> int:
        """Span of the contig in texture pixels."""
        return self.pixel_end - self.pixel_start


@dataclass(frozen=True)
class ContigRange:
    """
    Contig span in overview pixels, half-open ``[start, end)``.

    A zero-width range is legal: it marks a contig too small to be
    represented on the overview map.
    """
    start: int
    end: int
    order_index: int

    @property
    def width(self) -> int:
        return self.end - self.start


# ============================================================================
#                         LINKS & CHAINS
# ============================================================================

class Orientation(str, Enum):
    """
    Relative orientation of a contig pair (I, J) with I before J.

    First letter describes I: ``H`` keeps I forward so its tail abuts J,
    ``T`` reverses I so its head abuts J. Second letter describes J: ``H``
    keeps J forward so its head abuts I, ``T`` reverses J so its tail
    abuts I.
    """
    HH = "HH"
    HT = "HT"
    TH = "TH"
    TT = "TT"

    @property
    def inverts_first(self) -> bool:
        return self in (Orientation.TH, Orientation.TT)

    @property
    def inverts_second(self) -> bool:
        return self in (Orientation.HT, Orientation.TT)

    @property
    def first_at_tail(self) -> bool:
        """Whether contig I must sit at the tail end of its chain."""
        return not self.inverts_first

    @property
    def second_at_head(self) -> bool:
        """Whether contig J must sit at the head end of its chain."""
        return not self.inverts_second

    def swapped(self) -> "Orientation":
        """Label describing the same adjacency with the roles of I and J exchanged."""
        return _SWAPPED[self]

    @classmethod
    def from_flags(cls, invert_first: bool, invert_second: bool) -> "Orientation":
        return ORIENTATIONS[int(invert_first) * 2 + int(invert_second)]


# Canonical scoring order: HH, HT, TH, TT
ORIENTATIONS: Tuple[Orientation, ...] = (
    Orientation.HH,
    Orientation.HT,
    Orientation.TH,
    Orientation.TT,
)

_SWAPPED = {
    Orientation.HH: Orientation.TT,
    Orientation.HT: Orientation.HT,
    Orientation.TH: Orientation.TH,
    Orientation.TT: Orientation.HH,
}


@dataclass
class ContigLink:
    """
    Scored adjacency hypothesis between two contigs.

    Attributes:
        i: Order index of the first contig
        j: Order index of the second contig (always greater than i)
        score: Best score across the four orientations (0.0-1.0)
        orientation: Orientation achieving the best score
        all_scores: Scores for HH, HT, TH, TT in that order
    """
    i: int
    j: int
    score: float
    orientation: Orientation
    all_scores: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)


@dataclass(frozen=True)
class ChainEntry:
    """
    One contig placed in a chain.

    Attributes:
        order_index: Position of the contig in the current display order
        inverted: Whether to flip the contig relative to how it is currently
            displayed; False keeps the current orientation, it does not undo
            an existing inversion
    """
    order_index: int
    inverted: bool = False

    def flipped(self) -> "ChainEntry":
        return ChainEntry(self.order_index, not self.inverted)


Chain = List[ChainEntry]


def reverse_chain(chain: Chain) -> Chain:
    """
    Reverse a chain, toggling the orientation of every member.

    Returns a new list; the input chain is left untouched.
    """
    return [entry.flipped() for entry in reversed(chain)]


# ============================================================================
#                         RESULTS
# ============================================================================

@dataclass
class Breakpoint:
    """
    Proposed cut inside a contig.

    Attributes:
        offset: Texture-pixel offset relative to the contig's pixel start
        confidence: Relative depth of the signal drop (0.0-1.0)
    """
    offset: int
    confidence: float


@dataclass
class AutoCutResult:
    """Breakpoints keyed by contig order index."""
    breakpoints: Dict[int, List[Breakpoint]] = field(default_factory=dict)

    @property
    def total_breakpoints(self) -> int:
        return sum(len(bps) for bps in self.breakpoints.values())


@dataclass
class AutoSortResult:
    """
    Proposed chromosome chains.

    Attributes:
        chains: Ordered, oriented chains, longest first
        links: Links used to build the chains (diagnostics)
        threshold: Link score threshold used by the chain builder
    """
    chains: List[Chain] = field(default_factory=list)
    links: List[ContigLink] = field(default_factory=list)
    threshold: float = 0.0

    def proposed_order(self) -> List[ChainEntry]:
        """Flatten chains into a single proposed contig order."""
        return [entry for chain in self.chains for entry in chain]

    def covered_indices(self) -> List[int]:
        """Sorted order indices appearing in any chain."""
        return sorted(entry.order_index for chain in self.chains for entry in chain)


# ============================================================================
#                         PARAMETER HELPERS
# ============================================================================

def params_from_dict(cls, overrides: Optional[Dict[str, Any]] = None):
    """
    Instantiate a parameter dataclass from a partial mapping.

    Fields absent from ``overrides`` keep their defaults; unknown keys are
    logged and ignored.
    """
    known = {f.name for f in fields(cls)}
    values = {}
    for key, value in (overrides or {}).items():
        if key in known:
            values[key] = value
        else:
            logger.warning(f"Ignoring unknown {cls.__name__} field: {key}")
    return cls(**values)

# HiCWeaver v0.1.0
# Any usage is subject to this software's license.
