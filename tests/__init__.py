"""
Test suite for the Indodax private API client.

Run all tests from project root:
    pytest
    pytest tests/
    pytest tests/test_operations/

Run specific test file:
    pytest tests/test_formatters.py
    pytest tests/test_exchanges/test_indodax.py

Run with coverage:
    pytest --cov=. --cov-report=html
"""
