from __future__ import annotations

import shutil
import sys
from pathlib import Path
from typing import Iterable


def parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    return False


def parse_int(value: object, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def write_nojekyll(output_dir: Path) -> Path:
    path = output_dir / ".nojekyll"
    path.write_text("", encoding="utf-8")
    return path


def write_cname(output_dir: Path, domain: str) -> Path:
    path = output_dir / "CNAME"
    path.write_text(f"{domain}\n", encoding="utf-8")
    return path


def clean_output_dir(output_dir: Path, project_root: Path, protected: Iterable[Path] = ()) -> None:
    if not output_dir.exists():
        return
    output_resolved = output_dir.resolve()
    root_resolved = project_root.resolve()
    if output_resolved == root_resolved:
        print("Refusing to clean project root.", file=sys.stderr)
        sys.exit(1)
    if not output_resolved.is_relative_to(root_resolved):
        print("Refusing to clean output directory outside project root.", file=sys.stderr)
        sys.exit(1)
    for path in protected:
        resolved = path.resolve()
        if resolved == output_resolved or resolved.is_relative_to(output_resolved):
            print(f"Refusing to clean output directory containing {path}.", file=sys.stderr)
            sys.exit(1)
    shutil.rmtree(output_dir)
