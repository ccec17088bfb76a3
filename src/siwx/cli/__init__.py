"""Command-line tools for SIWx messages."""
