from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

import yaml

from .logging_setup import get_logger, with_extras
from .records import CandidateRecord

logger = get_logger(__name__)

INDEX_FILENAME = "index.md"
TOML_DELIMITER = "+++"
YAML_DELIMITER = "---"


class FrontMatterError(RuntimeError):
    pass


def _warn(msg: str, **extras: Any) -> None:
    if extras:
        with_extras(logger, **extras).warning(msg)
    else:
        logger.warning(msg)


def list_publication_folders(root: Union[str, Path]) -> List[Path]:
    """
    One folder per publication (`<root>/<folder>/index.md`), sorted by name so
    the candidate order is stable across filesystems.
    """
    root_path = Path(root)
    if not root_path.is_dir():
        raise FileNotFoundError(f"Publications folder not found: {root_path}")
    return sorted((p for p in root_path.iterdir() if p.is_dir()), key=lambda p: p.name)


def split_front_matter(text: str) -> Tuple[str, str]:
    """Return (delimiter, front matter body) of a Hugo content file."""
    lines = text.strip().split("\n")
    delimiter = lines[0].strip()
    if delimiter not in (TOML_DELIMITER, YAML_DELIMITER):
        raise FrontMatterError(f"Unrecognized delimiter: {delimiter!r}")
    for idx in range(1, len(lines)):
        if lines[idx].rstrip() == delimiter:
            return delimiter, "\n".join(lines[1:idx])
    raise FrontMatterError(f"Missing closing delimiter {delimiter!r}")


def parse_front_matter(text: str) -> Dict[str, Any]:
    delimiter, body = split_front_matter(text)
    try:
        if delimiter == TOML_DELIMITER:
            document = tomllib.loads(body)
        else:
            document = yaml.safe_load(body)
    except (tomllib.TOMLDecodeError, yaml.YAMLError) as e:
        raise FrontMatterError(f"Invalid front matter: {e}") from e
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise FrontMatterError("Front matter is not a mapping")
    return document


def read_publication(folder: Union[str, Path]) -> CandidateRecord:
    folder_path = Path(folder)
    text = (folder_path / INDEX_FILENAME).read_text(encoding="utf-8")
    return CandidateRecord.from_front_matter(parse_front_matter(text), folder_path)


def get_local_publications(root: Union[str, Path], *, skip_invalid: bool = True) -> List[CandidateRecord]:
    """
    Read every local publication under `root` (e.g. `content/publication`).

    Folders without an index file are skipped. Unparseable front matter is
    logged and skipped, or raised when `skip_invalid` is False.
    """
    publications: List[CandidateRecord] = []
    for folder in list_publication_folders(root):
        if not (folder / INDEX_FILENAME).is_file():
            _warn("Publication folder has no index file", folder=str(folder))
            continue
        try:
            publications.append(read_publication(folder))
        except (FrontMatterError, UnicodeDecodeError) as e:
            if not skip_invalid:
                raise
            _warn("Skipping unparseable publication", folder=str(folder), error=str(e))
    return publications
