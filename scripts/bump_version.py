#!/usr/bin/env python3
"""
Keep the fluxstore version in sync.

The version lives in two places:
- pyproject.toml            (version = "x.y.z" in [project])
- fluxstore/__init__.py     (__version__ = "x.y.z")

Usage:
    python scripts/bump_version.py 0.2.0
    python scripts/bump_version.py 0.2.0 --dry-run
    python scripts/bump_version.py --check
"""

import argparse
import re
import sys
from pathlib import Path

from rich.console import Console

ROOT = Path(__file__).resolve().parent.parent

VERSION_FILES = {
    ROOT / "pyproject.toml": re.compile(r'^(version\s*=\s*)"(.*?)"$', re.MULTILINE),
    ROOT / "fluxstore" / "__init__.py": re.compile(
        r'^(__version__\s*=\s*)"(.*?)"$', re.MULTILINE
    ),
}

console = Console()


def validate_version_format(version: str) -> bool:
    """Validate version string format (x.y.z)"""
    return bool(re.match(r"^\d+\.\d+\.\d+$", version))


def read_versions() -> dict:
    versions = {}
    for path, pattern in VERSION_FILES.items():
        if not path.exists():
            raise FileNotFoundError(path)
        match = pattern.search(path.read_text())
        if match is None:
            raise ValueError(f"No version found in {path.relative_to(ROOT)}")
        versions[path] = match.group(2)
    return versions


def write_version(path: Path, pattern: re.Pattern, new_version: str, dry_run: bool) -> None:
    content = path.read_text()
    updated = pattern.sub(lambda m: f'{m.group(1)}"{new_version}"', content, count=1)
    label = path.relative_to(ROOT)
    if dry_run:
        console.print(f"[yellow]would update[/] {label} -> {new_version}")
        return
    path.write_text(updated)
    console.print(f"[green]updated[/] {label} -> {new_version}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Bump version in fluxstore project")
    parser.add_argument("version", nargs="?", help="New version number (format: x.y.z)")
    parser.add_argument("--dry-run", action="store_true", help="Show changes only")
    parser.add_argument(
        "--check", action="store_true", help="Fail if the version files disagree"
    )
    args = parser.parse_args()

    try:
        current = read_versions()
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    if args.check:
        if len(set(current.values())) != 1:
            for path, version in current.items():
                console.print(f"{path.relative_to(ROOT)}: {version}")
            console.print("[red]Versions disagree[/]")
            return 1
        console.print(f"Version {next(iter(current.values()))} is consistent")
        return 0

    if not args.version or not validate_version_format(args.version):
        console.print(
            f"[red]Error:[/] Invalid version format {args.version!r}. Expected x.y.z"
        )
        return 1

    for path, pattern in VERSION_FILES.items():
        write_version(path, pattern, args.version, args.dry_run)
    if not args.dry_run:
        console.print(f"\nVersion bumped to {args.version}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
