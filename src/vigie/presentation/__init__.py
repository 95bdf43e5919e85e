"""
Vigie presentation layer (RPC relay app).
"""
