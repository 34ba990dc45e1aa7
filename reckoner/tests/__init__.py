"""Tests for the reckoner package."""
