#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HiCWeaver v0.1.0

Tests for AutoCut breakpoint detection.

Author: HiCWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import numpy as np
import pytest

from hicweaver.curation_core.autocut_module import (
    AutoCutParams,
    autocut,
    compute_local_baseline,
    detect_breakpoints,
    enforce_min_fragment_size,
    min_region_width,
)
from hicweaver.curation_core.data_structures import Breakpoint, Contig

from conftest import layout_contigs


def single_contig(pixel_length, pixel_start=0):
    return [Contig(name="ctg0", length=pixel_length * 100,
                   pixel_start=pixel_start, pixel_end=pixel_start + pixel_length)]


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------

class TestAutoCutParams:
    """Test parameter defaults and overrides."""

    def test_defaults(self):
        params = AutoCutParams()
        assert params.cut_threshold == 0.20
        assert params.window_size == 8
        assert params.min_fragment_size == 16
        assert params.min_confidence == 0.3

    def test_partial_override(self):
        params = AutoCutParams.from_dict({'window_size': 12})
        assert params.window_size == 12
        assert params.cut_threshold == 0.20

    def test_unknown_keys_ignored(self):
        params = AutoCutParams.from_dict({'bogus': 1, 'cut_threshold': 0.4})
        assert params.cut_threshold == 0.4

    def test_none_gives_defaults(self):
        assert AutoCutParams.from_dict(None) == AutoCutParams()


# ---------------------------------------------------------------------------
# Local baseline
# ---------------------------------------------------------------------------

class TestLocalBaseline:
    """Test the positive-only sliding baseline."""

    def test_zeros_excluded(self):
        """Zero samples do not pull the baseline down."""
        density = np.array([2.0, 0.0, 0.0, 2.0, 2.0])
        baseline = compute_local_baseline(density, 1)
        np.testing.assert_allclose(baseline, 2.0)

    def test_all_zero_window(self):
        baseline = compute_local_baseline(np.zeros(10), 2)
        np.testing.assert_allclose(baseline, 0.0)

    def test_window_width(self):
        """Each position averages a centred window of 4 * window_size + 1 samples."""
        density = np.arange(1, 21, dtype=float)
        baseline = compute_local_baseline(density, 2)
        # Position 10 covers indices 6..14
        assert baseline[10] == pytest.approx(np.mean(density[6:15]))

    def test_empty(self):
        assert compute_local_baseline(np.zeros(0), 4).size == 0


# ---------------------------------------------------------------------------
# Breakpoint detection on density curves
# ---------------------------------------------------------------------------

class TestDetectBreakpoints:
    """Test detection on synthetic density curves."""

    def test_zero_gap_breakpoint(self):
        """A 10-pixel zero gap in a flat curve gives one full-confidence cut at its midpoint."""
        density = np.ones(128)
        density[60:70] = 0.0
        breakpoints = detect_breakpoints(density, 8, 0.2, 16)

        assert len(breakpoints) == 1
        assert breakpoints[0].offset == 65
        assert breakpoints[0].confidence == pytest.approx(1.0)

    def test_flat_curve_has_no_breakpoints(self):
        assert detect_breakpoints(np.ones(100), 8, 0.2, 16) == []

    def test_isolated_dip_ignored(self):
        """Dips narrower than the minimum region width are noise."""
        density = np.ones(128)
        density[64:66] = 0.0
        assert min_region_width(8) == 4
        assert detect_breakpoints(density, 8, 0.2, 16) == []

    def test_shallow_dip_ignored(self):
        """A drop smaller than cut_threshold is not low density."""
        density = np.ones(128)
        density[60:70] = 0.9
        assert detect_breakpoints(density, 8, 0.2, 16) == []

    def test_gap_near_edge_rejected(self):
        """No cut within min_fragment_size of a contig edge."""
        density = np.ones(128)
        density[4:12] = 0.0
        assert detect_breakpoints(density, 8, 0.2, 16) == []

    def test_short_curve(self):
        """Curves shorter than two fragments never break."""
        density = np.ones(30)
        density[12:18] = 0.0
        assert detect_breakpoints(density, 8, 0.2, 16) == []

    def test_two_gaps_sorted(self):
        density = np.ones(200)
        density[50:60] = 0.0
        density[140:150] = 0.0
        breakpoints = detect_breakpoints(density, 8, 0.2, 16)

        assert [bp.offset for bp in breakpoints] == [55, 145]


class TestMinFragmentEnforcement:
    """Test spacing between accepted breakpoints."""

    def test_stronger_candidate_wins(self):
        candidates = [Breakpoint(50, 0.6), Breakpoint(58, 0.9), Breakpoint(100, 0.5)]
        kept = enforce_min_fragment_size(candidates, 200, 16)

        assert [bp.offset for bp in kept] == [58, 100]

    def test_edges_enforced(self):
        candidates = [Breakpoint(10, 1.0), Breakpoint(190, 1.0), Breakpoint(100, 0.4)]
        kept = enforce_min_fragment_size(candidates, 200, 16)

        assert [bp.offset for bp in kept] == [100]

    def test_spacing_holds(self):
        rng = np.random.default_rng(7)
        candidates = [Breakpoint(int(o), float(c))
                      for o, c in zip(rng.integers(0, 300, 40), rng.random(40))]
        kept = enforce_min_fragment_size(candidates, 300, 20)

        offsets = [bp.offset for bp in kept]
        assert offsets == sorted(offsets)
        assert all(b - a >= 20 for a, b in zip(offsets, offsets[1:]))
        assert all(20 <= o <= 280 for o in offsets)


# ---------------------------------------------------------------------------
# Full AutoCut
# ---------------------------------------------------------------------------

class TestAutoCut:
    """Test AutoCut on contact maps."""

    def test_gapped_contig_is_cut(self, gapped_contig_map):
        result = autocut(gapped_contig_map, single_contig(128), [0], 128)

        assert list(result.breakpoints) == [0]
        (bp,) = result.breakpoints[0]
        assert 54 <= bp.offset <= 70
        assert bp.confidence > 0.5

    def test_offsets_scaled_to_texture(self, gapped_contig_map):
        """Overview offsets are mapped back to texture pixels."""
        overview = autocut(gapped_contig_map, single_contig(128), [0], 128)
        texture = autocut(gapped_contig_map, single_contig(256), [0], 256)

        assert texture.breakpoints[0][0].offset == 2 * overview.breakpoints[0][0].offset

    def test_clean_contig_not_cut(self):
        pos = np.arange(128)
        matrix = 1.0 / (1.0 + np.abs(pos[:, None] - pos[None, :]))
        result = autocut(matrix, single_contig(128), [0], 128)

        assert result.breakpoints == {}
        assert result.total_breakpoints == 0

    def test_narrow_contig_skipped(self, gapped_contig_map):
        """Contigs narrower than two fragments yield nothing."""
        contigs = layout_contigs([100, 28])
        result = autocut(gapped_contig_map, contigs, [0, 1], 128)

        assert 1 not in result.breakpoints

    def test_min_confidence_filter(self, gapped_contig_map):
        params = AutoCutParams(min_confidence=0.99)
        result = autocut(gapped_contig_map, single_contig(128), [0], 128, params)

        assert result.breakpoints == {}

    def test_empty_inputs(self):
        assert autocut(np.zeros((0, 0)), [], [], 0).breakpoints == {}

    def test_zero_signal(self):
        result = autocut(np.zeros((64, 64)), single_contig(64), [0], 64)
        assert result.breakpoints == {}

    def test_breakpoint_clamp(self):
        """Every accepted offset lies strictly inside its contig."""
        rng = np.random.default_rng(3)
        for _ in range(5):
            raw = rng.random((120, 120))
            matrix = (raw + raw.T) / 2
            matrix[rng.integers(0, 120, 10)] = 0.0
            contigs = layout_contigs([40, 50, 30])
            result = autocut(matrix, contigs, [0, 1, 2], 120)

            for order_index, breakpoints in result.breakpoints.items():
                pixel_length = contigs[order_index].pixel_length
                for bp in breakpoints:
                    assert 0 < bp.offset < pixel_length
                    assert 0.0 <= bp.confidence <= 1.0

    def test_inputs_not_mutated(self, gapped_contig_map):
        before = gapped_contig_map.copy()
        autocut(gapped_contig_map, single_contig(128), [0], 128)
        np.testing.assert_array_equal(gapped_contig_map, before)

# HiCWeaver v0.1.0
# Any usage is subject to this software's license.
