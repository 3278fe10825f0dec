"""Filesystem, lock and path helpers."""
