"""
Command-line entry points: wage-ingest and wage-admin.
"""
