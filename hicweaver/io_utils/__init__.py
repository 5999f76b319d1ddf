"""
HiCWeaver v0.1.0

I/O Module for HiCWeaver.

Module structure:
1. contact_map_io.py - Contact maps (.npy/.npz), contig tables, contig orders
2. result_export.py - AutoCut/AutoSort export (JSON, TSV)
"""

from .contact_map_io import (
    infer_texture_size,
    load_contact_map,
    load_contig_order,
    load_contigs_tsv,
)
from .result_export import (
    autocut_result_to_dict,
    autosort_result_to_dict,
    export_autocut_json,
    export_autocut_tsv,
    export_autosort_json,
    export_chains_tsv,
    scaffold_sort_result_to_dict,
)

__all__ = [
    "infer_texture_size",
    "load_contact_map",
    "load_contig_order",
    "load_contigs_tsv",
    "autocut_result_to_dict",
    "autosort_result_to_dict",
    "export_autocut_json",
    "export_autocut_tsv",
    "export_autosort_json",
    "export_chains_tsv",
    "scaffold_sort_result_to_dict",
]
