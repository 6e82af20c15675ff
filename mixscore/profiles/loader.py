from __future__ import annotations
from pathlib import Path
import json
import logging
import re

from mixscore.errors import ReferenceResolutionError
from mixscore.profiles.resolver import resolve_reference
from mixscore.types import ReferenceDocument

logger = logging.getLogger(__name__)

_GENRE_RE = re.compile(r"^[A-Za-z0-9_\-]+$")


def load_reference_payload(path: str | Path) -> dict:
    """
    Read a reference JSON file.

    Raises:
        ReferenceResolutionError: if the file is missing or not a JSON object
    """
    p = Path(path)
    try:
        with open(p, "r", encoding="utf-8") as f:
            j = json.load(f)
    except FileNotFoundError as exc:
        raise ReferenceResolutionError(f"reference file not found: {p}") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise ReferenceResolutionError(f"could not read reference file {p}: {exc}") from exc
    if not isinstance(j, dict):
        raise ReferenceResolutionError(f"reference file {p} must contain a JSON object")
    return j


class DirectoryReferenceSource:
    """Reference source backed by a directory of ``{genre}.json`` files."""

    def __init__(self, root: str | Path, *, default_band_tolerance_db: float = 2.0):
        self.root = Path(root)
        self.default_band_tolerance_db = default_band_tolerance_db

    def path_for(self, genre: str) -> Path:
        if not isinstance(genre, str) or not _GENRE_RE.match(genre):
            raise ReferenceResolutionError(f"invalid genre key: {genre!r}", genre=str(genre))
        return self.root / f"{genre}.json"

    def load_payload(self, genre: str) -> dict:
        path = self.path_for(genre)
        logger.debug("loading reference %s from %s", genre, path)
        try:
            return load_reference_payload(path)
        except ReferenceResolutionError as exc:
            raise ReferenceResolutionError(str(exc), genre=genre) from exc

    def load(self, genre: str) -> ReferenceDocument:
        return resolve_reference(
            self.load_payload(genre),
            genre,
            default_band_tolerance_db=self.default_band_tolerance_db,
        )


def load_reference(
    genre: str,
    root: str | Path,
    *,
    default_band_tolerance_db: float = 2.0
) -> ReferenceDocument:
    """Load ``{root}/{genre}.json`` and resolve it."""
    return DirectoryReferenceSource(
        root, default_band_tolerance_db=default_band_tolerance_db
    ).load(genre)
