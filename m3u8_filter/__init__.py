"""HLS playlist rewriting proxy with optional ad-segment filtering."""

__version__ = "1.0.0"
