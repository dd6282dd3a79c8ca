from abc import ABC, abstractmethod
from pathlib import Path


class Storage(ABC):
    """Byte-exact blob storage holding test case archives."""

    @abstractmethod
    def download(self, path: str) -> bytes:
        ...

    @abstractmethod
    def upload(self, path: str, content: bytes) -> None:
        ...


class LocalStorage(Storage):
    def __init__(self, root: str):
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        return self.root / path.lstrip("/")

    def download(self, path: str) -> bytes:
        return self._resolve(path).read_bytes()

    def upload(self, path: str, content: bytes) -> None:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
