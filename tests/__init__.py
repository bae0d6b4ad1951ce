"""
Test suite for purrgallery.

This module contains all test cases for the application:
- Unit tests for models, storage tiers, the media store and the CLI tasks
- Integration tests for complete workflows on real DuckDB files
"""
