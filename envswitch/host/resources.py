"""Resource readers: resolve a resource path to its text, or None."""

from pathlib import Path
from typing import Dict, Optional, Union


class DirectoryResources:
    """Reads resources from files below a base directory."""

    def __init__(self, base_dir: Union[str, Path], encoding: str = "utf-8"):
        self.base_dir = Path(base_dir)
        self.encoding = encoding

    def __call__(self, path: str) -> Optional[str]:
        base = self.base_dir.resolve()
        target = (base / path).resolve()
        # Paths escaping the base directory do not exist as resources.
        if base != target and base not in target.parents:
            return None
        if not target.is_file():
            return None
        return target.read_text(encoding=self.encoding)


class MappingResources:
    """Reads resources from an in-memory mapping of path -> text."""

    def __init__(self, resources: Optional[Dict[str, str]] = None):
        self.resources: Dict[str, str] = dict(resources or {})

    def add(self, path: str, text: str) -> None:
        self.resources[path] = text

    def __call__(self, path: str) -> Optional[str]:
        return self.resources.get(path)
