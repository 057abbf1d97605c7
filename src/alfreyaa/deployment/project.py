"""Reads the assistant's own source files for code proposals and deployment."""

import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectFile:
    """A project file path (relative to the project root) and its text."""

    path: str
    content: str

    @property
    def is_empty(self) -> bool:
        return not self.content.strip()


class ProjectSource:
    """Supplies a fixed list of project files."""

    def __init__(self, root: Path, files: list[str]):
        self.root = Path(root)
        self.files = list(files)

    def load(self) -> list[ProjectFile]:
        """Read every listed file in order.

        Files that cannot be read come back with empty content so callers can
        decide whether to skip them.
        """
        loaded = []
        for rel_path in self.files:
            path = self.root / rel_path
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Could not read {rel_path}, returning empty content: {e}")
                content = ""
            loaded.append(ProjectFile(path=rel_path, content=content))
        return loaded
