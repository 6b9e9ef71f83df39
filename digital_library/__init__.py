"""Digital Library - Core Package

This package contains the core modules of the book tracker:
- Data models (book.py)
- Record store (library.py)
- Flat-file persistence (storage.py)
"""
