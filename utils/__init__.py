"""Digital Library - CLI Utilities

Input validation and output rendering helpers used by main.py.
"""
