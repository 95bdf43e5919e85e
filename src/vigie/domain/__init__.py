"""
Vigie domain layer.
"""
