import os
import uuid
from typing import List, Optional
from romasub.config import settings
from romasub.utils.logger import logger


class TempWorkspace:
    """Request-scoped file prefix under the temp directory.

    Every file a request writes is named ``<prefix>*``. Leaving the context
    removes all of them, whether the request succeeded or not.
    """

    def __init__(self, base_dir: Optional[str] = None, tag: str = "romasub"):
        self.base_dir = base_dir or settings.TMP_DIR
        self.name = f"{tag}_{uuid.uuid4().hex}"
        self.prefix = os.path.join(self.base_dir, self.name)

    def path(self, suffix: str) -> str:
        return f"{self.prefix}{suffix}"

    def files(self) -> List[str]:
        try:
            entries = os.listdir(self.base_dir)
        except FileNotFoundError:
            return []
        return sorted(os.path.join(self.base_dir, f) for f in entries if f.startswith(self.name))

    def cleanup(self):
        for path in self.files():
            try:
                os.remove(path)
            except OSError as e:
                logger.warning(f"Could not remove temp file {path}: {e}")

    def __enter__(self) -> "TempWorkspace":
        os.makedirs(self.base_dir, exist_ok=True)
        return self

    def __exit__(self, exc_type, exc, tb):
        self.cleanup()
        return False
