"""Shared helpers: errors, logging and HTTP plumbing."""
