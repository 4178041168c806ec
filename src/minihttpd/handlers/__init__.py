"""
=============================================================================
REQUEST HANDLERS
=============================================================================

    routes.py   AppRoutes - the fixed route table (/, /user-agent, /echo,
                /files) and handle(request, file_directory)
    files.py    FileStore - reads and writes files under one directory

Usage:

    from minihttpd.handlers import handle

    response = handle(request, "/tmp/")

=============================================================================
"""

from .files import FileStore, PathTraversalError
from .routes import AppRoutes, create_router, handle

__all__ = [
    "AppRoutes",
    "FileStore",
    "PathTraversalError",
    "create_router",
    "handle",
]
