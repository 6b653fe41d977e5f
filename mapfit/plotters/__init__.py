"""
Plotting backends for mapfit.
"""
