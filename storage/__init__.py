"""
Storage package: HTTP retry/backoff helpers.
"""
