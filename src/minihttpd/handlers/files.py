"""
=============================================================================
FILE STORAGE
=============================================================================

FileStore is the only part of the server that touches the filesystem. The
/files/ routes use it to read and write files by name inside one directory
(ServerConfig.directory, --directory on the command line).

    FileStore("/tmp/data")

    write("notes.txt", b"hi")    → /tmp/data/notes.txt   (created/overwritten)
    read("notes.txt")            → b"hi"
    read("missing.txt")          → FileNotFoundError
    read("../etc/passwd")        → PathTraversalError    (never opened)

=============================================================================
SECURITY
=============================================================================

Names come straight from the request path. Before any I/O the joined path
is resolved (following ".." and symlinks) and must still be inside the
root directory, otherwise PathTraversalError is raised. A name containing
a NUL byte cannot name a file and is rejected with an OSError (EINVAL).

Concurrent writers to the same name are not coordinated: the last write
wins.

=============================================================================
"""

import errno
import logging
from pathlib import Path
from typing import Union


logger = logging.getLogger(__name__)


class PathTraversalError(PermissionError):
    """The requested name resolves to a location outside the root directory."""


class FileStore:
    """
    Read and write files by name under a root directory.

    The directory does not have to exist when the store is created; a
    missing directory surfaces as an OSError on the first write.
    """

    def __init__(self, root_dir: Union[str, Path]):
        self.root_dir = Path(root_dir)

    def __repr__(self) -> str:
        return f"FileStore(root_dir={str(self.root_dir)!r})"

    def resolve(self, name: str) -> Path:
        """
        Map a file name to its path inside the root directory.

        Raises:
            PathTraversalError: If the name escapes the root directory.
            OSError: If the name contains a NUL byte.
        """
        if "\x00" in name:
            raise OSError(errno.EINVAL, "File name contains a NUL byte", name)

        root = self.root_dir.resolve()
        full_path = (root / name).resolve()
        try:
            full_path.relative_to(root)
        except ValueError:
            logger.warning(f"Path traversal attempt: {name!r}")
            raise PathTraversalError(f"{name!r} is outside {str(root)!r}") from None
        return full_path

    def read(self, name: str) -> bytes:
        """
        Return the contents of a file.

        Raises:
            PathTraversalError: Name escapes the root directory.
            FileNotFoundError: No such file.
            OSError: Any other read failure (e.g. the name is a directory).
        """
        path = self.resolve(name)
        logger.debug(f"Reading {path}")
        return path.read_bytes()

    def write(self, name: str, content: bytes) -> int:
        """
        Create or overwrite a file.

        Returns:
            Number of bytes written.

        Raises:
            PathTraversalError: Name escapes the root directory.
            OSError: The file could not be written.
        """
        path = self.resolve(name)
        logger.debug(f"Writing {len(content)} bytes to {path}")
        return path.write_bytes(content)
