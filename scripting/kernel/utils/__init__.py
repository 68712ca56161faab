"""Kernel utilities: executable lookup and stream handler plumbing."""
