"""Utility helpers for prebake."""
