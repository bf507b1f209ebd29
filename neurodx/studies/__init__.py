"""
Study-level helpers for Neurodx.

Design intent:
- Summarize many study records for dashboard counters.
- Memoize normalized results at the call site, outside the pure normalizer.
"""
