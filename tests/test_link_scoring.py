#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HiCWeaver v0.1.0

Tests for AutoSort link scoring and the adaptive link threshold.

Author: HiCWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import numpy as np
import pytest

from hicweaver.curation_core.autosort_module import (
    AutoSortParams,
    compute_all_link_scores,
    compute_link_score,
    derive_link_threshold,
    score_contig_pair,
)
from hicweaver.curation_core.data_structures import (
    ORIENTATIONS,
    ContigLink,
    ContigRange,
    Orientation,
)
from hicweaver.curation_utils.contig_ranges import build_contig_ranges
from hicweaver.curation_utils.diagonal_profile import compute_intra_diagonal_profile

from conftest import chromosome_map, corner_linked_map


def make_link(i, j, score, orientation=Orientation.HH):
    return ContigLink(i=i, j=j, score=score, orientation=orientation)


class TestOrientation:
    """Test orientation label helpers."""

    def test_flags(self):
        assert not Orientation.HH.inverts_first and not Orientation.HH.inverts_second
        assert Orientation.HT.inverts_second and not Orientation.HT.inverts_first
        assert Orientation.TH.inverts_first and not Orientation.TH.inverts_second
        assert Orientation.TT.inverts_first and Orientation.TT.inverts_second

    def test_from_flags_round_trip(self):
        for orientation in ORIENTATIONS:
            assert Orientation.from_flags(orientation.inverts_first, orientation.inverts_second) is orientation

    def test_swapped_is_involution(self):
        for orientation in ORIENTATIONS:
            assert orientation.swapped().swapped() is orientation


class TestComputeLinkScore:
    """Test single-orientation scoring."""

    def test_narrow_range_scores_zero(self):
        matrix = np.ones((20, 20))
        profile = np.ones(10)
        narrow = ContigRange(0, 3, 0)
        wide = ContigRange(3, 20, 1)

        for orientation in ORIENTATIONS:
            assert compute_link_score(matrix, narrow, wide, orientation.inverts_first,
                                      orientation.inverts_second, profile, 10) == 0.0
            assert compute_link_score(matrix, wide, narrow, orientation.inverts_first,
                                      orientation.inverts_second, profile, 10) == 0.0

    def test_zero_profile_scores_zero(self):
        matrix = np.ones((20, 20))
        score = compute_link_score(matrix, ContigRange(0, 10, 0), ContigRange(10, 20, 1),
                                   False, False, np.zeros(11), 10)
        assert score == 0.0

    def test_matching_corner_scores_one(self, corner_linked):
        matrix, contigs = corner_linked
        ranges = build_contig_ranges(contigs, [0, 1, 2], 90, 90)
        profile = compute_intra_diagonal_profile(matrix, ranges, 50)

        score = compute_link_score(matrix, ranges[0], ranges[1], False, False, profile, 50)
        assert score == pytest.approx(1.0)

    def test_no_signal_scores_zero(self, corner_linked):
        matrix, contigs = corner_linked
        ranges = build_contig_ranges(contigs, [0, 1, 2], 90, 90)
        profile = compute_intra_diagonal_profile(matrix, ranges, 50)

        for orientation in ORIENTATIONS:
            score = compute_link_score(matrix, ranges[0], ranges[2], orientation.inverts_first,
                                       orientation.inverts_second, profile, 50)
            assert score == 0.0

    def test_flat_map_accepted(self, corner_linked):
        matrix, contigs = corner_linked
        ranges = build_contig_ranges(contigs, [0, 1, 2], 90, 90)
        profile = compute_intra_diagonal_profile(matrix, ranges, 50)

        square = compute_link_score(matrix, ranges[0], ranges[1], True, False, profile, 50)
        flat = compute_link_score(matrix.ravel(), ranges[0], ranges[1], True, False, profile, 50)
        assert square == pytest.approx(flat)


class TestComputeAllLinkScores:
    """Test pairwise scoring over a contig order."""

    def test_hh_corner_link(self, corner_linked):
        """Two corner-linked contigs give an HH link stronger than any pair with the unrelated contig."""
        matrix, contigs = corner_linked
        links = compute_all_link_scores(matrix, contigs, [0, 1, 2], 90)

        best = links[0]
        assert (best.i, best.j) == (0, 1)
        assert best.orientation == Orientation.HH
        assert best.score > 0.99

        ranges = build_contig_ranges(contigs, [0, 1, 2], 90, 90)
        profile = compute_intra_diagonal_profile(matrix, ranges, 50)
        unrelated = max(score_contig_pair(matrix, ranges[0], ranges[2], profile, 50))
        assert best.score > unrelated

    def test_unrelated_pairs_dropped(self, corner_linked):
        """Pairs below the signal cutoff are not kept."""
        matrix, contigs = corner_linked
        links = compute_all_link_scores(matrix, contigs, [0, 1, 2], 90)

        assert all(2 not in (link.i, link.j) for link in links)

    def test_sorted_descending(self, two_chromosomes):
        matrix, contigs, _ = two_chromosomes
        links = compute_all_link_scores(matrix, contigs, list(range(len(contigs))), matrix.shape[0])

        scores = [link.score for link in links]
        assert scores == sorted(scores, reverse=True)
        assert all(link.i < link.j for link in links)

    def test_score_bounds(self):
        rng = np.random.default_rng(11)
        raw = rng.random((80, 80)) * 5
        matrix = raw + raw.T
        contigs = chromosome_map(1, 8, 10)[1]
        links = compute_all_link_scores(matrix, contigs, list(range(8)), 80,
                                        AutoSortParams(signal_cutoff=0.0))

        assert len(links) == 28
        for link in links:
            assert 0.0 <= link.score <= 1.0
            assert all(0.0 <= s <= 1.0 for s in link.all_scores)
            assert link.score == max(link.all_scores)
            assert link.orientation is ORIENTATIONS[int(np.argmax(link.all_scores))]

    def test_orientation_symmetry(self, two_chromosomes):
        """Swapping I and J permutes orientation scores and keeps the best score."""
        matrix, contigs, _ = two_chromosomes
        ranges = build_contig_ranges(contigs, list(range(len(contigs))), matrix.shape[0], matrix.shape[0])
        profile = compute_intra_diagonal_profile(matrix, ranges, 50)

        for i, j in [(0, 1), (2, 5), (1, 3)]:
            forward = dict(zip(ORIENTATIONS, score_contig_pair(matrix, ranges[i], ranges[j], profile, 50)))
            backward = dict(zip(ORIENTATIONS, score_contig_pair(matrix, ranges[j], ranges[i], profile, 50)))

            assert max(forward.values()) == pytest.approx(max(backward.values()))
            for orientation in ORIENTATIONS:
                assert forward[orientation] == pytest.approx(backward[orientation.swapped()])

    def test_signal_cutoff_monotonic(self, two_chromosomes):
        matrix, contigs, _ = two_chromosomes
        order = list(range(len(contigs)))
        counts = [
            len(compute_all_link_scores(matrix, contigs, order, matrix.shape[0],
                                        AutoSortParams(signal_cutoff=cutoff)))
            for cutoff in (0.0, 0.05, 0.3, 0.6, 0.9)
        ]
        assert counts == sorted(counts, reverse=True)

    def test_zero_signal_gives_no_links(self):
        contigs = chromosome_map(1, 5, 10)[1]
        assert compute_all_link_scores(np.zeros((50, 50)), contigs, list(range(5)), 50) == []


class TestLinkThreshold:
    """Test the adaptive 85th-percentile threshold."""

    def test_no_links(self):
        assert derive_link_threshold([], 0.2) == 0.2

    def test_percentile_index(self):
        """Threshold is the score at index floor(0.15 * n) of the sorted list."""
        links = [make_link(0, k, s) for k, s in enumerate([0.19, 0.18, 0.15, 0.12, 0.1, 0.08, 0.05], start=1)]
        # floor(0.15 * 7) = 1
        assert derive_link_threshold(links, 0.2) == 0.18

    def test_capped_by_hard_threshold(self):
        links = [make_link(0, k, 0.9) for k in range(1, 10)]
        assert derive_link_threshold(links, 0.2) == 0.2

# HiCWeaver v0.1.0
# Any usage is subject to this software's license.
