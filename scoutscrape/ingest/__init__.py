"""
Fetch, decode and replay of Scout snapshots.
"""
