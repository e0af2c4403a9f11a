"""
TagWeb - incremental article/user/tag graph explorer.
"""

__version__ = "0.1.0"
