"""Command-line interface (``timerspine``)."""
