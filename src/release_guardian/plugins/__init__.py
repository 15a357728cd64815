"""Pluggable backends (KMS) and their loader."""
