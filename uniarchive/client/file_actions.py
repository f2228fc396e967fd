# uniarchive/client/file_actions.py
from __future__ import annotations

import logging
import tempfile
import webbrowser
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from ..models import FileRecord
from .config import ClientConfig

logger = logging.getLogger(__name__)

VIEW_UNAVAILABLE = "URL de visualisation non disponible"
DOWNLOAD_UNAVAILABLE = "URL de téléchargement non disponible"
DEFAULT_FILENAME = "document.pdf"


@dataclass
class ActionResult:
    ok: bool
    error: Optional[str] = None
    path: Optional[Path] = None
    url: Optional[str] = None


class FileActions:
    """
    View / download handlers for one file card.

    `opener` is the `webbrowser` module by default; anything with
    `open_new_tab(url)` and `open(url, new=0)` works.

    `view` and `download` are the entry points outside Streamlit. A client
    created here is closed by `close()` or on leaving a `with` block; an
    injected one is left to its owner.
    """

    def __init__(
        self,
        config: ClientConfig,
        http: Optional[httpx.Client] = None,
        opener=webbrowser,
    ):
        self.config = config
        self._owns_http = http is None
        self.http = http or httpx.Client(timeout=config.timeout)
        self.opener = opener

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    def __enter__(self) -> "FileActions":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def file_url(self, file: FileRecord, kind: str = "view") -> Optional[str]:
        if not file.id:
            return None
        return self.config.url(f"/api/files/{file.id}/{kind}")

    def view_url(self, file: FileRecord) -> Optional[str]:
        return self.file_url(file, "view")

    def download_url(self, file: FileRecord) -> Optional[str]:
        return self.file_url(file, "download")

    def view(self, file: FileRecord) -> ActionResult:
        """Open the inline view in a new tab, or the current one if refused."""
        url = self.view_url(file)
        if not url:
            return ActionResult(ok=False, error=VIEW_UNAVAILABLE)

        if not self.opener.open_new_tab(url):
            logger.warning(f"New tab refused for {url}; opening in the current window")
            self.opener.open(url, new=0)
        return ActionResult(ok=True, url=url)

    def download(self, file: FileRecord, dest_dir) -> ActionResult:
        """
        Save the file under `dest_dir` as its original name.

        Bytes are streamed into a temporary file in the same directory and
        renamed into place once complete; a partial file never remains.
        """
        url = self.download_url(file)
        if not url:
            return ActionResult(ok=False, error=DOWNLOAD_UNAVAILABLE)

        dest_dir = Path(dest_dir)
        target = dest_dir / Path(file.original_name or DEFAULT_FILENAME).name
        tmp_path: Optional[Path] = None
        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                dir=dest_dir, prefix=".download-", suffix=".part", delete=False
            ) as tmp:
                tmp_path = Path(tmp.name)
                logger.info(f"[API] GET /api/files/{file.id}/download")
                with self.http.stream("GET", url) as resp:
                    resp.raise_for_status()
                    for chunk in resp.iter_bytes():
                        tmp.write(chunk)
            tmp_path.replace(target)
        except (httpx.HTTPError, OSError) as e:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            logger.error(f"Download of {file.id} failed: {e}")
            return ActionResult(ok=False, error=f"Téléchargement impossible: {e}", url=url)

        logger.info(f"Downloaded {file.original_name!r} to {target}")
        return ActionResult(ok=True, path=target, url=url)
