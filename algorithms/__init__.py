"""
Measurement workers and the phase orchestrator.
"""
