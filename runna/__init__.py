"""
Runna - local development web server with live reload
"""

__version__ = "1.0.0"
