"""
Test suite for CareHub.

Contains integration tests for the API and unit tests for the core helpers.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
