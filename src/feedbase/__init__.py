"""Feedbase — multi-tenant feedback boards.

The decision core behind every feedback read and write: identity
resolution, workspace/board/feedback authorization, and the facet
filter + ranking engine that orders what a principal is allowed to see.
"""

__version__ = "0.1.0"
