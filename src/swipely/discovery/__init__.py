"""Filtering, ranking and bookkeeping logic behind the swipe feed."""
