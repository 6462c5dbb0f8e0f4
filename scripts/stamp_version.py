"""Embed the release version into ``app/VERSION`` before building a binary."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_VERSION_FILE = PROJECT_ROOT / "app" / "VERSION"
PLACEHOLDER = "dev"

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from services.update.versioning import parse_version  # noqa: E402


def normalize_ref_name(ref_name: str) -> str:
    """Turn a tag such as ``v1.2.3`` or ``refs/tags/v1.2.3`` into ``1.2.3``."""

    stripped = ref_name.strip()
    if stripped.startswith("refs/tags/"):
        stripped = stripped[len("refs/tags/"):]
    if stripped.startswith("v"):
        return stripped[1:]
    return stripped


def stamp_version(ref_name: str, output: Path) -> Path:
    """Write the normalized version derived from *ref_name* to *output*."""

    normalized = normalize_ref_name(ref_name)
    if parse_version(normalized) is None:
        raise ValueError(f"Not a release version: {ref_name!r}")
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(f"{normalized}\n", encoding="utf-8")
    return output


def reset_version(output: Path) -> Path:
    """Restore the development placeholder."""

    output.write_text(f"{PLACEHOLDER}\n", encoding="utf-8")
    return output


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "ref_name",
        nargs="?",
        help="Git tag or ref name to stamp (e.g. 'v1.2.3').",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_VERSION_FILE,
        help="Path to the VERSION file that should be stamped.",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Write the 'dev' placeholder instead of a release version.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if args.reset:
        reset_version(args.output)
        return 0
    if not args.ref_name:
        print("error: a ref name is required unless --reset is given", file=sys.stderr)
        return 2
    try:
        stamp_version(args.ref_name, args.output)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
