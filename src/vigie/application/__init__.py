"""
Vigie application layer.
"""
