"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Navigation middleware.
"""

from .dispatch import loading_dispatch, mark_preloading, redirecting_dispatch
from .navigator import Navigator

__all__ = [
    "Navigator",
    "loading_dispatch",
    "redirecting_dispatch",
    "mark_preloading",
]
