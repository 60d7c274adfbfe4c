"""Quantization, tile geometry and the in-memory grid session."""
