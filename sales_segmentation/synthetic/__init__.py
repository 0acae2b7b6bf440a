"""Synthetic sales rows for demos and tests.

Produces realistic-but-fake upload rows so the full pipeline can be
exercised without a real export.
"""

from .generator import (
    DEFAULT_COUNTRIES,
    DEFAULT_SAMPLE_MAPPING,
    SampleConfig,
    generate_sample_rows,
)

__all__ = [
    "DEFAULT_COUNTRIES",
    "DEFAULT_SAMPLE_MAPPING",
    "SampleConfig",
    "generate_sample_rows",
]
