"""HTTP client for the workspace API."""

import json
import logging
from typing import Any, Dict, Iterator, List, Optional

import httpx

from .models import ChangeEvent, FileData, FileEntry, FolderSnapshot, SaveResult

logger = logging.getLogger(__name__)


class WorkspaceAPIError(Exception):
    """Non-success response from the workspace API."""

    def __init__(self, message: str, kind: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code


class WorkspaceClient:
    """
    Thin synchronous client mirroring the facade operations.

    Args:
        base_url: Server root, e.g. ``http://127.0.0.1:8765``
        timeout: Request timeout in seconds
        http: Pre-built httpx client (used instead of creating one)
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8765",
        timeout: float = 10.0,
        http: Optional[httpx.Client] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_http = http is None
        self._http = http or httpx.Client(base_url=self.base_url, timeout=timeout)

    def _request(self, method: str, url: str, **kwargs) -> Any:
        resp = self._http.request(method, url, **kwargs)
        if resp.status_code != 200:
            try:
                body = resp.json()
                error = body.get("error", resp.text)
                kind = body.get("kind")
            except (ValueError, AttributeError):
                error, kind = resp.text, None
            raise WorkspaceAPIError(error, kind=kind, status_code=resp.status_code)
        return resp.json()

    def open_file(self) -> FileData:
        return FileData.from_dict(self._request("POST", "/api/files/open"))

    def read_file(self, path: str) -> FileData:
        return FileData.from_dict(self._request("GET", "/api/files/read", params={"path": path}))

    def save_file(self, path: str, content: str) -> None:
        self._request("POST", "/api/files/save", json={"path": path, "content": content})

    def save_file_as(self, content: str) -> SaveResult:
        return SaveResult.from_dict(self._request("POST", "/api/files/save-as", json={"content": content}))

    def create_file(self, path: str, content: Optional[str] = None) -> FileData:
        payload: Dict[str, Any] = {"path": path}
        if content is not None:
            payload["content"] = content
        return FileData.from_dict(self._request("POST", "/api/files/create", json=payload))

    def open_folder(self) -> FolderSnapshot:
        return FolderSnapshot.from_dict(self._request("POST", "/api/folders/open"))

    def read_directory(self, path: str) -> List[FileEntry]:
        data = self._request("GET", "/api/folders/read", params={"path": path})
        return [FileEntry.from_dict(e) for e in data]

    def create_folder(self, path: str) -> FileEntry:
        return FileEntry.from_dict(self._request("POST", "/api/folders/create", json={"path": path}))

    def rename(self, old_path: str, new_name: str) -> str:
        data = self._request("POST", "/api/items/rename", json={"old_path": old_path, "new_name": new_name})
        return data["path"]

    def delete(self, path: str) -> None:
        self._request("DELETE", "/api/items", params={"path": path})

    def move(self, source_path: str, target_dir: str) -> str:
        data = self._request("POST", "/api/items/move", json={"source_path": source_path, "target_dir": target_dir})
        return data["path"]

    def start_watch(self, path: str) -> None:
        self._request("POST", "/api/watch/start", json={"path": path})

    def stop_watch(self, path: str) -> None:
        self._request("POST", "/api/watch/stop", json={"path": path})

    def stop_all_watches(self) -> None:
        self._request("POST", "/api/watch/stop-all")

    def watched_paths(self) -> List[str]:
        return self._request("GET", "/api/watch")["paths"]

    def iter_events(self, limit: int = 0) -> Iterator[ChangeEvent]:
        """Follow the server's event stream, optionally stopping after ``limit`` events."""
        params = {"limit": limit} if limit else None
        with self._http.stream("GET", "/api/events", params=params, timeout=None) as resp:
            for line in resp.iter_lines():
                if not line.startswith("data:"):
                    continue
                data_str = line[5:].strip()
                if not data_str:
                    continue
                try:
                    yield ChangeEvent.from_dict(json.loads(data_str))
                except (json.JSONDecodeError, KeyError, ValueError) as e:
                    logger.debug(f"Skipping malformed event line: {e}")

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
