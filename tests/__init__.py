"""Tests for the release distribution tooling."""
