"""
Shared helpers for the Parametric Tower pipeline (logging, file and data-URI I/O).
"""
