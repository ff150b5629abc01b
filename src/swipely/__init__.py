"""
Swipely discovery service.

The package provides utilities for:
    * shaping published listings into a single inventory frame,
    * filtering and ranking the swipe feed for a point and a filter set,
    * swipe history, saved lists and upvote-based trending,
    * moderating locals' favorites submitted by users.

Everything can run against the bundled seed listings so it can be executed
without a Supabase connection.
"""

from __future__ import annotations

from typing import Any

__all__ = ["build_feed"]


def build_feed(*args: Any, **kwargs: Any):
    """Lazy wrapper so importing swipely doesn't pull pandas immediately."""

    from .discovery.feed import build_feed as _build_feed

    return _build_feed(*args, **kwargs)
