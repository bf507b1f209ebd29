"""
Neurodx diagnostic-result package.

Design intent:
- Turn raw ML pipeline payloads into one render-safe diagnosis view model.
- Keep interpretation logic in one place instead of per-screen copies.
- Return errors as values so presentation layers never see a traceback.
"""
