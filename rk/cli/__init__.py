"""Command line interface (``rk``)."""
