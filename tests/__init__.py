"""
Test suite for pfile.

- Unit tests for models, services and the CLI
- Integration tests for complete upload / browse / export workflows
"""
