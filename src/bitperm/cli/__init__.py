"""Command-line interface for bitperm."""
