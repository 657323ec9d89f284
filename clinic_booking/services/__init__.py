"""Booking engine services."""
