from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple, Union

from .logging_setup import get_logger, with_extras
from .matching.similarity import parse_date
from .records import TargetRecord

logger = get_logger(__name__)

PR_BODY_HEADER = (
    "Automatic Pull Request from hal-sync.\n"
    "\n"
    "The following HAL publications were considered missing and are added in this PR: \n"
    "\n"
)

# HAL does not distinguish workshops from conferences
PUBLICATION_TYPES = {
    "COMM": "conference",
    "ART": "journal",
    "REPORT": "report",
    "SOFTWARE": "software",
}


def _debug(msg: str, **extras: Any) -> None:
    if extras:
        with_extras(logger, **extras).debug(msg)
    else:
        logger.debug(msg)


def _warn(msg: str, **extras: Any) -> None:
    if extras:
        with_extras(logger, **extras).warning(msg)
    else:
        logger.warning(msg)


def _toml_str(value: Optional[str]) -> str:
    # JSON string escapes are valid TOML basic-string escapes
    return json.dumps(value or "", ensure_ascii=False)


def _toml_array(values: Optional[Sequence[str]]) -> str:
    if not values:
        return "[ ]"
    return "[" + ", ".join(_toml_str(v) for v in values) + "]"


def _toml_multiline(value: str) -> str:
    if "'''" not in value:
        return f"'''\n{value}\n'''"
    return _toml_str(value)


def _toml_date(value: Any) -> str:
    parsed = parse_date(value)
    if parsed is not None:
        return parsed.isoformat()
    return _toml_str(value if isinstance(value, str) else None)


def publication_type(doc_type: Optional[str]) -> str:
    return PUBLICATION_TYPES.get(doc_type or "", "")


def folder_name_for(target: TargetRecord) -> str:
    name = target.identifier or target.doc_id
    if not name:
        raise ValueError("Cannot name a publication folder without a HAL id or docid")
    # must stay a single path segment under the publications folder
    if name in (".", "..") or Path(name).name != name or "\\" in name:
        raise ValueError(f"Unsafe publication folder name: {name!r}")
    return name


def render_index_md(target: TargetRecord) -> str:
    title = target.titles[0] if target.titles else ""
    publication_name = target.conference_title or target.journal_title or target.book_title
    abstract = "\n".join(target.abstract or ())

    lines = [
        "+++",
        f"title = {_toml_str(title)}",
        f"date = {_toml_date(target.publication_date)}",
        f"authors = {_toml_array(target.authors)}",
        "profile = false",
        "",
        f"publication_types = [{_toml_str(publication_type(target.doc_type))}]",
        f"publication = {_toml_str(publication_name)}",
        'publication_short = ""',
        "",
        f"abstract = {_toml_multiline(abstract)}",
        "",
        '# summary = """',
        "# ",
        '# """',
        "",
        f"tags = {_toml_array(target.keywords)}",
        "featured = false",
        "",
        f"hal = {_toml_str(target.identifier)}",
    ]
    if target.alternate_identifier:
        lines.append(f"doi = {_toml_str(target.alternate_identifier)}")
    lines += [
        "",
        "# [[links]]",
        '# url = "https://arxiv.org/abs/..."',
        '# name = "ArXiv"',
        '# icon_pack = "ai"',
        '# icon = "arxiv"',
        "",
        "+++",
        "",
    ]
    return "\n".join(lines)


def build_pull_request_body(targets: Sequence[TargetRecord]) -> str:
    body = PR_BODY_HEADER
    for target in targets:
        body += f"- [{target.label}]({target.uri or ''})\n\n"
    return body


def create_files(target: TargetRecord, local_path: Union[str, Path], *, dry_run: bool = False) -> List[str]:
    folder = Path(local_path) / folder_name_for(target)
    _debug("Creating files", folder=str(folder), dry_run=dry_run)
    created: List[str] = []

    index_path = folder / "index.md"
    if not dry_run:
        folder.mkdir(parents=True, exist_ok=True)
        index_path.write_text(render_index_md(target), encoding="utf-8")
    created.append(str(index_path))

    if target.bibtex:
        bib_path = folder / "cite.bib"
        if not dry_run:
            bib_path.write_text(target.bibtex, encoding="utf-8")
        created.append(str(bib_path))
    return created


def create_publication_files(
    targets: Sequence[TargetRecord],
    local_path: Union[str, Path],
    *,
    dry_run: bool = False,
) -> Tuple[List[str], str]:
    """
    Create the local files for every missing publication and return the
    created paths together with the pull request body listing them.
    Targets whose id cannot be used as a folder name are logged and skipped.
    """
    all_created: List[str] = []
    written: List[TargetRecord] = []
    for target in targets:
        try:
            all_created.extend(create_files(target, local_path, dry_run=dry_run))
        except ValueError as e:
            _warn("Skipping publication without a usable folder name", target=target.label, error=str(e))
            continue
        written.append(target)
    return all_created, build_pull_request_body(written)
