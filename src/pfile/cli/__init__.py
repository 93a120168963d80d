"""Command line interface for pfile (invoke tasks)."""
