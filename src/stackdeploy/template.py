"""Template file access."""

import os
from pathlib import Path

from stackdeploy.errors import TemplateNotFoundError


class FileTemplateSource:
    """Reads templates from the local filesystem."""

    def exists(self, path: str | os.PathLike) -> bool:
        return Path(path).is_file()

    def read(self, path: str | os.PathLike) -> str:
        if not self.exists(path):
            raise TemplateNotFoundError(f"Template file does not exist: {path}")
        return Path(path).read_text(encoding="utf-8")
