"""Core update history pipeline: gathering, parsing, resolution and processing."""
