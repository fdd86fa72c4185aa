"""
Normalize package: parse raw statistics feed payloads into record models.
"""
