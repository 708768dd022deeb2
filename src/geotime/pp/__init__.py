"""Preprocessing functions for trajectory inference."""

from .basic import (
    from_tables,
    generate_synthetic,
    load_data,
    preprocess,
    validate_anndata,
)

__all__ = [
    "from_tables",
    "load_data",
    "validate_anndata",
    "preprocess",
    "generate_synthetic",
]
