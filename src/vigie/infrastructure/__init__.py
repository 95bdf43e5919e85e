"""
Vigie infrastructure layer.
"""
