"""
fxsync - Core
"""
