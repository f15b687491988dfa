"""
Shared helpers: formatting and structured event logging.
"""
