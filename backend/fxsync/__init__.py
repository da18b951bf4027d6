"""
fxsync - Exchange rate synchronization and historical backfill
"""
