"""Streamed multi-file code generation: extraction, validation and commit."""
