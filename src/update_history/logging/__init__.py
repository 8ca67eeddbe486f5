"""Workflow logging for the update history pipeline."""
