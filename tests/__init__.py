"""Tests for the m3u8 filter proxy."""
