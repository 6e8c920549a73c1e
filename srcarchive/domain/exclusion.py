"""
Exclusion list domain object for srcarchive.

Paths are relative to the archive prefix and matched exactly; an
excluded directory takes everything beneath it with it. There is no
glob or pattern matching.
"""

from dataclasses import dataclass
from typing import Iterable, Tuple


def normalize_relative(path: str) -> str:
    """Strip './', leading and trailing slashes."""
    path = path.strip()
    while path.startswith('./'):
        path = path[2:]
    return path.strip('/')


@dataclass(frozen=True)
class ExclusionList:
    """
    Fixed set of prefix-relative paths to drop from the archive.

    Example:
        excl = ExclusionList.from_paths(["docs/screenshots"])
        excl.matches("docs/screenshots/a.png")   -> True
        excl.matches("docs/screenshots-old")     -> False
    """

    paths: Tuple[str, ...] = ()

    @classmethod
    def from_paths(cls, paths: Iterable[str]) -> 'ExclusionList':
        normalized = []
        for path in paths:
            path = normalize_relative(path)
            if not path:
                raise ValueError("Exclusion path may not be empty or the archive root")
            if path not in normalized:
                normalized.append(path)
        return cls(paths=tuple(normalized))

    def __len__(self) -> int:
        return len(self.paths)

    def __iter__(self):
        return iter(self.paths)

    def matching(self, relative_path: str) -> str:
        """The excluded path covering `relative_path`, or '' if none does."""
        relative_path = normalize_relative(relative_path)
        for excluded in self.paths:
            if relative_path == excluded or relative_path.startswith(excluded + '/'):
                return excluded
        return ''

    def matches(self, relative_path: str) -> bool:
        return bool(self.matching(relative_path))
