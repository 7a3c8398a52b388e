"""Static file lookup for GET/HEAD requests.

Consulted before routing when ``AppConfig.static_dirs`` is set. A hit
is served directly; a miss falls through to the router.
"""

import mimetypes
from collections.abc import Sequence
from pathlib import Path

from perch.http.response import Response, merge_headers


class StaticFiles:
    """Serves files from one or more directories under a URL prefix.

    Directories are searched in order; the first existing file wins.

    Security: resolves symlinks and verifies the final path is within
    the directory being searched to prevent path traversal.

    Usage::

        static = StaticFiles(["./public", "./assets"], prefix="/")
        response = static.lookup("/css/site.css")  # Response or None
    """

    __slots__ = ("_cache_control", "_directories", "_index", "_prefix")

    def __init__(
        self,
        directories: Sequence[str | Path],
        prefix: str = "/",
        *,
        index: str = "index.html",
        cache_control: str = "public, max-age=3600",
    ) -> None:
        self._directories = tuple(Path(d).resolve() for d in directories)
        self._index = index
        self._cache_control = cache_control

        # Normalize prefix: leading slash, no trailing slash, root is "".
        stripped = "/" + prefix.strip("/")
        self._prefix = stripped if stripped != "/" else ""

    def resolve(self, path: str) -> Path | None:
        """Return the file that *path* maps to, or ``None``."""
        if self._prefix:
            if not path.startswith(self._prefix + "/") and path != self._prefix:
                return None
            relative = path[len(self._prefix) :].lstrip("/")
        else:
            relative = path.lstrip("/")

        for directory in self._directories:
            candidate = (directory / relative).resolve() if relative else directory
            if not candidate.is_relative_to(directory):
                continue
            if candidate.is_dir():
                candidate = candidate / self._index
            if candidate.is_file():
                return candidate
        return None

    def lookup(self, path: str, global_headers: dict[str, str] | None = None) -> Response | None:
        """Build a response for *path* if a matching file exists."""
        file_path = self.resolve(path)
        if file_path is None:
            return None
        return self.serve(file_path, global_headers or {})

    def serve(self, file_path: Path, global_headers: dict[str, str]) -> Response:
        """Read *file_path* and build a response."""
        content_type, _ = mimetypes.guess_type(str(file_path))
        return Response(
            body=file_path.read_bytes(),
            content_type=content_type or "application/octet-stream",
            headers=merge_headers(global_headers, {"Cache-Control": self._cache_control}),
        )
