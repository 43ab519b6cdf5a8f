"""
HTTP API for the support chat backend
"""
