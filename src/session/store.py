"""File-backed persistence for the session bundle.

Two on-disk formats are read:

- current: ``{"cookies": [...], "token": "..."}``
- legacy: a bare JSON array of cookies (token is treated as empty)

Writes always use the current format and replace the file atomically.
"""

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from src.crawler.errors import StorageError
from src.session.schemas import Cookie, SessionBundle

logger = logging.getLogger(__name__)


class SessionStore:
    """Load and save a SessionBundle at a fixed path."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> SessionBundle | None:
        """Read the stored bundle.

        Returns:
            The bundle, or None if no session file exists.

        Raises:
            StorageError: If the file exists but cannot be read or parsed.
        """
        if not self._path.exists():
            logger.info("No stored session at %s", self._path)
            return None

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StorageError(f"cannot read session file {self._path}: {e}") from e

        try:
            if isinstance(raw, list):
                bundle = SessionBundle(
                    cookies=[Cookie.model_validate(c) for c in raw], token=""
                )
                logger.info(
                    "Loaded legacy session file %s (%d cookies, no token)",
                    self._path, len(bundle.cookies),
                )
                return bundle
            if isinstance(raw, dict) and "cookies" in raw:
                bundle = SessionBundle.model_validate(raw)
                logger.info(
                    "Loaded session file %s (%d cookies, token %s)",
                    self._path,
                    len(bundle.cookies),
                    "present" if bundle.token else "absent",
                )
                return bundle
        except ValidationError as e:
            raise StorageError(f"invalid session file {self._path}: {e}") from e

        raise StorageError(f"unrecognized session file format in {self._path}")

    def save(self, bundle: SessionBundle) -> None:
        """Write the bundle, replacing any previous file atomically."""
        payload = bundle.model_dump(mode="json", by_alias=True)
        directory = self._path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=directory, prefix=f".{self._path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, ensure_ascii=False, indent=2)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"cannot write session file {self._path}: {e}") from e

        logger.info(
            "Saved session to %s (%d cookies)", self._path, len(bundle.cookies)
        )
