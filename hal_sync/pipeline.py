from __future__ import annotations

import argparse
import json
import logging
import os
from typing import Any, Dict, List, Optional

from dotenv import find_dotenv, load_dotenv

# before the package imports: logging_setup reads LOG_LEVEL when loggers are created
load_dotenv(find_dotenv(usecwd=True))

from .hal_api import HalApiError, get_publications_from_author_id
from .local_publications import FrontMatterError, get_local_publications
from .logging_setup import get_logger, set_package_level, with_extras
from .matching.compare_publications import match_publications
from .publication_files import create_publication_files
from .records import MatchOutcome
from .runtime_config import RUNTIME_CONFIG

logger = get_logger(__name__)


def _info(msg: str, **extras: Any) -> None:
    if extras:
        with_extras(logger, **extras).info(msg)
    else:
        logger.info(msg)


def _warn(msg: str, **extras: Any) -> None:
    if extras:
        with_extras(logger, **extras).warning(msg)
    else:
        logger.warning(msg)


def _outcome_row(outcome: MatchOutcome) -> Dict[str, Any]:
    best = outcome.best
    return {
        "hal_id": outcome.target.identifier,
        "doi": outcome.target.alternate_identifier,
        "candidate_folder": best.folder_name if best else None,
        "candidate_hal_id": best.identifier if best else None,
        "confidence": round(outcome.confidence, 4),
        "accepted": outcome.accepted,
        "exact": outcome.exact,
    }


def run_sync(
    *,
    author_id: str,
    local_path: str,
    threshold: float,
    workers: int = 1,
    dry_run: bool = False,
    create_files: bool = True,
) -> Dict[str, Any]:
    """
    Fetch the author's HAL publications, match each against the local archive
    and create files for those without an accepted match.
    """
    _info("Requesting publications from HAL", author_id=author_id)
    targets = get_publications_from_author_id(author_id)

    _info("Parsing publications from local folder", local_path=local_path)
    candidates = get_local_publications(local_path)
    logger.debug("Found %d local publications", len(candidates))

    outcomes = match_publications(targets, candidates, threshold=threshold, workers=workers)
    for outcome in outcomes:
        row = _outcome_row(outcome)
        if outcome.accepted:
            _info("HAL publication matched", **row)
        else:
            _warn("HAL publication has no corresponding publication", **row)

    missing = [o.target for o in outcomes if not o.accepted]
    created_files: List[str] = []
    body = ""
    if create_files and missing:
        created_files, body = create_publication_files(missing, local_path, dry_run=dry_run)
        _info("Created files for missing publications", count=len(created_files), dry_run=dry_run)

    found = len(outcomes) - len(missing)
    return {
        "found": found,
        "missing": len(missing),
        "total": len(outcomes),
        "results": [_outcome_row(o) for o in outcomes],
        "created_files": created_files,
        "body": body,
    }


def _threshold_arg(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")
    if not 0.0 <= parsed <= 1.0:
        raise argparse.ArgumentTypeError("confidence threshold must be between 0 and 1")
    return parsed


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}")
    if parsed < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Compare HAL publications with a local publication folder and create the missing ones."
    )
    p.add_argument("--author-id", default=None, help="HAL author id (idHAL), e.g. remy-chaput")
    p.add_argument("--local-path", default=None, help="Folder holding one sub-folder per publication")
    p.add_argument("--confidence-threshold", type=_threshold_arg, default=None,
                   help="Minimum confidence (0-1) to consider a HAL publication already present")
    p.add_argument("--workers", type=_positive_int, default=None, help="Parallel workers for matching")
    p.add_argument("--dry-run", action="store_true", help="Compute created file paths without writing")
    p.add_argument("--no-create-files", dest="create_files", action="store_false",
                   help="Only report matches")
    p.add_argument("--debug", action="store_true")
    p.set_defaults(create_files=True)
    return p


def main(argv: Optional[list[str]] = None) -> int:
    load_dotenv(find_dotenv(usecwd=True))
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.debug:
        set_package_level("hal_sync", logging.DEBUG)

    author_id = args.author_id or os.environ.get("HAL_AUTHOR_ID") or RUNTIME_CONFIG.hal.author_id
    if not author_id:
        parser.error("--author-id (or HAL_AUTHOR_ID) is required")
    local_path = args.local_path or os.environ.get("LOCAL_PATH") or RUNTIME_CONFIG.local.publications_path
    threshold = args.confidence_threshold
    if threshold is None:
        env_threshold = os.environ.get("CONFIDENCE_THRESHOLD")
        try:
            threshold = _threshold_arg(env_threshold) if env_threshold else RUNTIME_CONFIG.matching.confidence_threshold
        except argparse.ArgumentTypeError as e:
            parser.error(f"CONFIDENCE_THRESHOLD: {e}")
    workers = args.workers or RUNTIME_CONFIG.matching.workers

    try:
        out = run_sync(
            author_id=author_id,
            local_path=local_path,
            threshold=threshold,
            workers=workers,
            dry_run=args.dry_run,
            create_files=args.create_files,
        )
    except (HalApiError, FrontMatterError, FileNotFoundError) as e:
        logger.error("Sync failed: %s", e)
        return 1

    print(json.dumps(out, ensure_ascii=False, indent=2, default=str))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
