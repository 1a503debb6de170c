"""Persistent state for the CodeQL distribution manager.

- StateStore: Key-value store (JSON file or in-memory)
- InstalledReleaseStore: Installed release record and folder index
- InvocationRateLimiter: Persisted once-per-interval invocation
"""
