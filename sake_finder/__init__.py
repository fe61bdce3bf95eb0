"""
Sake Finder.
Multi-marketplace sake search and recommendation service.
"""
__version__ = "1.0.0"
