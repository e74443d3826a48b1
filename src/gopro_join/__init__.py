"""
Merge chaptered GoPro recordings into single files
"""

__version__ = "1.0.0"
