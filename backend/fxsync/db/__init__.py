"""
fxsync Database Layer
"""
