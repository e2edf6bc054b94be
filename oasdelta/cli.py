import argparse
import logging
import sys
from typing import Any, Final, Optional

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from oasdelta.config import DiffConfig
from oasdelta.diff import Diff, get_diff
from oasdelta.errors import OasDeltaException
from oasdelta.report import get_html_report_as_string
from oasdelta.spec import load

logger = logging.getLogger(__name__)

FORMATS: Final[tuple[str, ...]] = ("yaml", "json", "html")
LOG_FORMAT: Final[str] = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="oasdelta",
        description="Compare two OpenAPI specifications",
    )
    parser.add_argument("--base", required=True, help="original OpenAPI spec (path or URL)")
    parser.add_argument("--revision", required=True, help="revised OpenAPI spec (path or URL)")
    parser.add_argument(
        "--prefix",
        default=None,
        help="path prefix that exists in base spec but not the revision",
    )
    parser.add_argument("--filter", default=None, help="regex to filter result paths")
    parser.add_argument(
        "--examples",
        action="store_true",
        default=None,
        help="whether to include examples in the diff",
    )
    parser.add_argument(
        "--exclude-description",
        action="store_true",
        default=None,
        help="ignore changes to descriptions",
    )
    parser.add_argument(
        "--breaking-only",
        action="store_true",
        default=None,
        help="display breaking changes only",
    )
    parser.add_argument(
        "--single-media-type",
        action="store_true",
        default=None,
        help="expect exactly one media type per content map",
    )
    parser.add_argument("--format", choices=FORMATS, default="yaml", help="output format")
    parser.add_argument("--summary", action="store_true", help="print the summary only")
    parser.add_argument(
        "--fail-on-diff",
        action="store_true",
        help="exit with status 1 when a difference is found",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def config_from_args(args: argparse.Namespace) -> DiffConfig:
    overrides: dict[str, Any] = {
        "path_prefix": args.prefix,
        "path_filter": args.filter,
        "include_examples": args.examples,
        "exclude_description": args.exclude_description,
        "breaking_only": args.breaking_only,
        "single_media_type": args.single_media_type,
    }
    # unset flags fall back to OASDELTA_* environment values
    return DiffConfig(**{k: v for k, v in overrides.items() if v is not None})


def render(diff: Diff, fmt: str, summary_only: bool) -> str:
    if summary_only:
        summary = diff.get_summary()
        if fmt == "json":
            return summary.model_dump_json(indent=1)
        return yaml.safe_dump(summary.to_dict(), sort_keys=False)

    if fmt == "json":
        return diff.to_json()
    if fmt == "html":
        return get_html_report_as_string(diff)
    return diff.to_yaml()


def main(argv: Optional[list[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING, format=LOG_FORMAT
    )

    try:
        config = config_from_args(args)
    except ValidationError as e:
        logger.error(str(e))
        return 1

    try:
        base = load(args.base)
    except OasDeltaException as e:
        logger.error("failed to load base spec from %r: %s", args.base, e)
        return 1

    try:
        revision = load(args.revision)
    except OasDeltaException as e:
        logger.error("failed to load revision spec from %r: %s", args.revision, e)
        return 1

    try:
        diff = get_diff(config, base, revision)
    except OasDeltaException as e:
        logger.error("failed to compare %r with %r: %s", args.base, args.revision, e)
        return 1

    print(render(diff, args.format, args.summary))

    if args.fail_on_diff and not diff.empty():
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
