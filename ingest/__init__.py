"""
Ingest package: statistics service client and concurrent feed fetching.
"""
