"""
fxsync - Utilities
"""
