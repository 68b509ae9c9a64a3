"""
Test suite for Sealed Catalog Matcher.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_bulk_mapping_service.py -v
"""
