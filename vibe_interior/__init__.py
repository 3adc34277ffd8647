"""
Vibe Interior furniture selection service
"""

__version__ = "1.0.0"
