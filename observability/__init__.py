"""
Metrics export and console reporting.
"""
