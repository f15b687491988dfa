"""
Core application engine for orchestrating a pass.

This package contains the primary logic. The `Pipeline` acts as the
coordinator for all content entries, delegating searching to a crawler and
delivery to a fetcher built by `backends`.
"""
