"""
Read model test suite.

This package contains:
- unit/: Unit tests (no Redis)
- integration/: Integration tests (fakeredis)
- e2e/: End-to-end tests (real Redis server)
"""
