"""Product insight shared libraries.

This package contains reusable components:
- common: Configuration and the pipeline error taxonomy
- vocabulary: Entity vocabulary and term matcher
- stores: Read-only explicit memory and precomputed statistics stores
"""
