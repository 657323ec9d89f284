"""
Clinic booking engine test suite
"""
