"""
Utility package: logging, prompt loading and message helpers.
"""
