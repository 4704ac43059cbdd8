"""User interfaces for fencesmith."""
