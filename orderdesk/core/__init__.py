"""
Core package for shared utilities.

Configuration, structured logging and the error taxonomy used across the
persistence, service and shell layers.
"""
