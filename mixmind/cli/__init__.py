"""Command-line interface for MixMind."""
