"""Helpers for the thesis proxy."""
