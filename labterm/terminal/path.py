"""
Virtual working directory for the simulated shell.

The path is stored as a tuple of segments and only joined into a
slash-delimited string for display, so the root is simply the empty tuple.
"""

from dataclasses import dataclass
from typing import Tuple


def _split(path: str) -> Tuple[str, ...]:
    return tuple(part for part in path.split("/") if part)


@dataclass(frozen=True)
class VirtualPath:
    """An absolute path in the simulated filesystem."""

    segments: Tuple[str, ...] = ()

    @classmethod
    def parse(cls, path: str) -> "VirtualPath":
        """Build a path from an absolute string such as ``/home/user``."""
        return cls.root().resolve(path if path.startswith("/") else "/" + path)

    @classmethod
    def root(cls) -> "VirtualPath":
        return cls(())

    @property
    def is_root(self) -> bool:
        return not self.segments

    def parent(self) -> "VirtualPath":
        """Drop the last segment. The parent of root is root."""
        return VirtualPath(self.segments[:-1])

    def child(self, name: str) -> "VirtualPath":
        return VirtualPath(self.segments + (name,))

    def resolve(self, target: str) -> "VirtualPath":
        """
        Resolve ``target`` against this path.

        Absolute targets replace the path, relative ones are appended.
        ``.`` segments are skipped and ``..`` pops one level, never above root.
        """
        current = VirtualPath.root() if target.startswith("/") else self
        for part in _split(target):
            if part == ".":
                continue
            if part == "..":
                current = current.parent()
            else:
                current = current.child(part)
        return current

    def display(self, home: "VirtualPath") -> str:
        """Render with the home prefix abbreviated to ``~``."""
        n = len(home.segments)
        if n and self.segments[:n] == home.segments:
            return "/".join(("~",) + self.segments[n:])
        return str(self)

    def __str__(self) -> str:
        return "/" + "/".join(self.segments)
