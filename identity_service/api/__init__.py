"""
HTTP adapter exposing the credential operations.
"""
