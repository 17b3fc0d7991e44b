"""
py-coastmap: land/water maps with per-feature coastlines over a planar mesh.
"""

__version__ = "0.1.0"
