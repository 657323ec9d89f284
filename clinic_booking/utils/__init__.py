"""Utility helpers for the booking engine."""
