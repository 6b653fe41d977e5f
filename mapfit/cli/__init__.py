"""
Command-line interface for mapfit.
"""
