"""Clinic booking resolution and discount eligibility engine."""

__version__ = "1.0.0"
