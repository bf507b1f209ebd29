"""
Diagnostic result interpretation boundary for Neurodx.

Design intent:
- Decode, classify and normalize ML pipeline payloads in one pass.
- Absorb legacy/current schema drift behind a single tagged variant.
- Treat missing optional sections as absence, never as failure.
"""

from .normalizer import normalize_result

__all__ = ["normalize_result"]
