"""
Attic web API package
"""
