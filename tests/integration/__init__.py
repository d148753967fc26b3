"""Integration tests for shiftctl.

These tests drive the service layer end to end against a mocked backend:

- test_workforce_service.py: sign in, clock in/out, restore and listings
- test_document_service.py: document limits, upload cleanup and downloads
- test_retry_logic.py: retries across the HTTP client and services
"""
