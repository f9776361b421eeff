"""Tests for keymaterial."""
