"""
API boundary for Neurodx.

Design intent:
- Expose the normalized diagnosis view model to presentation layers.
- Keep handlers thin; all interpretation lives in `neurodx.results`.
"""
