"""Tests for pmvault."""
