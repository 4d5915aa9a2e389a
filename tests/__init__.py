#!/usr/bin/env python3
"""
Test suite.

All tests run without external services: Redis and HTTP are mocked and
database tests use a throwaway SQLite file per test.

    # Run all tests
    python -m pytest tests/ -v

    # Only database-backed tests
    python -m pytest tests/ -v -m "db"
"""
