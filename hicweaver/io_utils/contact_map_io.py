#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HiCWeaver v0.1.0

Contact Map I/O: load overview contact maps, contig tables and contig
orders from disk.

Author: HiCWeaver Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from __future__ import annotations
import logging
import math
from pathlib import Path
from typing import Sequence

import numpy as np

from ..curation_core.data_structures import Contig

logger = logging.getLogger(__name__)

# Preferred array name inside .npz archives
NPZ_CONTACT_MAP_KEY = 'contact_map'

CONTIG_TSV_COLUMNS = ['name', 'length', 'pixel_start', 'pixel_end', 'inverted', 'scaffold_id']

_TRUE_VALUES = {'1', 'true', 'yes', '-', 'y'}
_FALSE_VALUES = {'0', 'false', 'no', '+', 'n', ''}
_MISSING_VALUES = {'', '.', 'na', 'none', 'null'}


# ============================================================================
#                           CONTACT MAPS
# ============================================================================

def load_contact_map(path: str | Path) -> np.ndarray:
    """
    Load an overview contact map from a NumPy file.

    ``.npy`` files hold the map directly; ``.npz`` archives are read from the
    ``contact_map`` entry, or from their only entry. Flat arrays whose length
    is a perfect square are reshaped row-major. Non-finite values are
    replaced with 0.

    Args:
        path: Path to a .npy or .npz file

    Returns:
        Square 2-D float64 array

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file format or array shape is invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Contact map file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == '.npy':
        data = np.load(path, allow_pickle=False)
    elif suffix == '.npz':
        with np.load(path, allow_pickle=False) as archive:
            keys = list(archive.keys())
            if NPZ_CONTACT_MAP_KEY in keys:
                data = archive[NPZ_CONTACT_MAP_KEY]
            elif len(keys) == 1:
                data = archive[keys[0]]
            else:
                raise ValueError(
                    f"{path}: archive holds {len(keys)} arrays {keys}; "
                    f"name the map '{NPZ_CONTACT_MAP_KEY}'"
                )
    else:
        raise ValueError(f"Unsupported contact map format: {path} (expected .npy or .npz)")

    matrix = np.asarray(data, dtype=np.float64)

    if matrix.ndim == 1:
        size = math.isqrt(matrix.size)
        if size * size != matrix.size:
            raise ValueError(
                f"{path}: flat contact map of length {matrix.size} is not a perfect square"
            )
        matrix = matrix.reshape(size, size)
    elif matrix.ndim != 2:
        raise ValueError(f"{path}: contact map must be 1-D or 2-D, got {matrix.ndim} dimensions")
    elif matrix.shape[0] != matrix.shape[1]:
        raise ValueError(f"{path}: contact map must be square, got shape {matrix.shape}")

    non_finite = ~np.isfinite(matrix)
    if non_finite.any():
        logger.warning(f"{path}: replacing {int(non_finite.sum())} non-finite values with 0")
        matrix = np.where(non_finite, 0.0, matrix)

    logger.info(f"Loaded {matrix.shape[0]}x{matrix.shape[1]} contact map from {path}")
    return matrix


# ============================================================================
#                           CONTIG TABLES
# ============================================================================

def _parse_int(value: str, column: str, line_num: int) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise ValueError(f"Line {line_num}: invalid {column} '{value}' (expected integer)") from e


def _parse_bool(value: str, line_num: int) -> bool:
    token = value.strip().lower()
    if token in _TRUE_VALUES:
        return True
    if token in _FALSE_VALUES:
        return False
    raise ValueError(f"Line {line_num}: invalid inverted flag '{value}' (expected 0/1, true/false or +/-)")


def load_contigs_tsv(tsv_path: str | Path) -> list[Contig]:
    """
    Parse a tab-separated contig table.

    TSV Format:
    -----------
    Column 1: name
    Column 2: length (bp)
    Column 3: pixel_start (texture pixels, inclusive)
    Column 4: pixel_end (texture pixels, exclusive)
    Column 5: optional inverted flag (0/1, true/false, +/-)
    Column 6: optional scaffold_id (integer; empty or '.' for none)

    Lines starting with '#' and empty lines are ignored, as is a header line
    starting with 'name'.

    Args:
        tsv_path: Path to TSV file

    Returns:
        List of Contig objects in file order

    Raises:
        ValueError: If a line is malformed
        FileNotFoundError: If file doesn't exist
    """
    tsv_path = Path(tsv_path)
    if not tsv_path.exists():
        raise FileNotFoundError(f"Contig table not found: {tsv_path}")

    contigs: list[Contig] = []

    with open(tsv_path, 'r') as f:
        for line_num, line in enumerate(f, start=1):
            line = line.rstrip('\n\r')

            # Skip comments, empty lines and the header
            if not line.strip() or line.startswith('#'):
                continue
            parts = line.split('\t')
            if parts[0].strip().lower() == 'name' and not contigs:
                continue

            if len(parts) < 4:
                raise ValueError(
                    f"Line {line_num}: Invalid format (need at least 4 columns: "
                    f"name, length, pixel_start, pixel_end). Got: {line}"
                )

            name = parts[0].strip()
            length = _parse_int(parts[1].strip(), 'length', line_num)
            pixel_start = _parse_int(parts[2].strip(), 'pixel_start', line_num)
            pixel_end = _parse_int(parts[3].strip(), 'pixel_end', line_num)

            if pixel_start < 0 or pixel_end < pixel_start:
                raise ValueError(
                    f"Line {line_num}: invalid pixel span [{pixel_start}, {pixel_end}) for {name}"
                )

            inverted = _parse_bool(parts[4], line_num) if len(parts) > 4 else False

            scaffold_id = None
            if len(parts) > 5 and parts[5].strip().lower() not in _MISSING_VALUES:
                scaffold_id = _parse_int(parts[5].strip(), 'scaffold_id', line_num)

            contigs.append(Contig(
                name=name,
                length=length,
                pixel_start=pixel_start,
                pixel_end=pixel_end,
                inverted=inverted,
                scaffold_id=scaffold_id,
            ))

    logger.info(f"Parsed {len(contigs)} contigs from {tsv_path}")
    return contigs


def load_contig_order(order_path: str | Path | None, num_contigs: int) -> list[int]:
    """
    Load the display order of contigs.

    One contig index per line; '#' comments and empty lines are ignored.
    Without a file the identity order ``0..num_contigs-1`` is returned.

    Args:
        order_path: Path to order file, or None
        num_contigs: Number of contigs in the contig table

    Returns:
        List of contig indices

    Raises:
        ValueError: If an entry is not an integer, out of range, or repeated
        FileNotFoundError: If file doesn't exist
    """
    if order_path is None:
        return list(range(num_contigs))

    order_path = Path(order_path)
    if not order_path.exists():
        raise FileNotFoundError(f"Contig order file not found: {order_path}")

    order: list[int] = []
    seen: set[int] = set()
    with open(order_path, 'r') as f:
        for line_num, line in enumerate(f, start=1):
            token = line.strip()
            if not token or token.startswith('#'):
                continue
            idx = _parse_int(token, 'contig index', line_num)
            if not 0 <= idx < num_contigs:
                raise ValueError(
                    f"Line {line_num}: contig index {idx} out of range [0, {num_contigs})"
                )
            if idx in seen:
                raise ValueError(f"Line {line_num}: contig index {idx} listed twice")
            seen.add(idx)
            order.append(idx)

    logger.info(f"Loaded order of {len(order)} contigs from {order_path}")
    return order


def infer_texture_size(contigs: Sequence[Contig], contig_order: Sequence[int]) -> int:
    """Full-resolution pixel span covered by the ordered contigs."""
    return sum(contigs[idx].pixel_length for idx in contig_order)

# HiCWeaver v0.1.0
# Any usage is subject to this software's license.
