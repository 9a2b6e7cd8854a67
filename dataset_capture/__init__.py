"""Guided object capture, frame-set extraction and durable upload."""

__version__ = "1.0.0"
