"""Utilities shared across layers."""
