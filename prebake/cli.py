"""Command-line driver: run one build pass over a source tree and write the output package."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from prebake.build.context import BuildContext
from prebake.errors import HostSyntaxError
from prebake.pipeline.emitter import DEFAULT_SUFFIX, HEADER
from prebake.pipeline.generator import Generator
from prebake.pipeline.marker_provider import MARKER_HINT
from prebake.utils.helpers import module_filename

logger = logging.getLogger(__name__)

SUCCESS = 0
USER_ERROR = 1
RUNTIME_ERROR = 3
STALE_OUTPUT = 4

_GENERATED_MARK = HEADER.splitlines()[0]

__all__ = ["main"]


def _parse_cli(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="prebake",
        description="Evaluate @compile_time_executor functions at build time",
    )
    parser.add_argument("source_root", help="Directory holding the host modules")
    parser.add_argument(
        "--out",
        required=True,
        help="Directory of the generated package (created if missing)",
    )
    parser.add_argument(
        "--suffix",
        default=DEFAULT_SUFFIX,
        help=f"Suffix of generated sibling functions (default: {DEFAULT_SUFFIX})",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Evaluate candidates on this many threads",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Write nothing; exit with status 4 if the output package is out of date",
    )
    parser.add_argument(
        "--no-determinism-check",
        action="store_true",
        help="Skip the warning for clock, random and I/O calls in candidate bodies",
    )
    parser.add_argument(
        "--log-level",
        choices=["WARNING", "INFO", "DEBUG"],
        default="WARNING",
        help="Logging level for prebake",
    )
    return parser.parse_args(argv)


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name)
    pkg_logger = logging.getLogger("prebake")
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(logging.BASIC_FORMAT))
    handler.setLevel(level)
    pkg_logger.addHandler(handler)
    pkg_logger.propagate = False
    pkg_logger.setLevel(level)


def render_package(context: BuildContext) -> Dict[str, str]:
    """File name -> text for every generated source plus the package ``__init__``."""
    files: Dict[str, str] = {}
    siblings = []
    for hint_name, text in context.sources:
        filename = module_filename(hint_name)
        files[filename] = text
        if hint_name != MARKER_HINT:
            siblings.append(filename[:-3])

    lines = [HEADER.format(origin="this build").rstrip("\n")]
    lines.extend(f"from . import {name}" for name in siblings)
    files["__init__.py"] = "\n".join(lines) + "\n"
    return files


def _generated_files(out: Path) -> List[Path]:
    if not out.is_dir():
        return []
    found = []
    for path in sorted(out.glob("*.py")):
        with path.open(encoding="utf-8") as fh:
            if fh.readline().rstrip("\n") == _GENERATED_MARK:
                found.append(path)
    return found


def stale_files(out: Path, files: Dict[str, str]) -> List[str]:
    """Names of files that a write would create, change or delete."""
    stale = []
    for filename, text in sorted(files.items()):
        path = out / filename
        if not path.is_file() or path.read_text(encoding="utf-8") != text:
            stale.append(filename)
    stale.extend(p.name for p in _generated_files(out) if p.name not in files)
    return stale


def write_package(out: Path, files: Dict[str, str]) -> None:
    out.mkdir(parents=True, exist_ok=True)
    for path in _generated_files(out):
        if path.name not in files:
            logger.info("Removing stale %s", path)
            path.unlink()
    for filename, text in files.items():
        (out / filename).write_text(text, encoding="utf-8")


def main(argv: Optional[List[str]] = None) -> int:
    ns = _parse_cli(argv)
    _configure_logging(ns.log_level)

    root = Path(ns.source_root)
    out = Path(ns.out)
    if not root.is_dir():
        print(f"Error: source root {root} is not a directory", file=sys.stderr)
        return USER_ERROR
    if ns.workers < 1:
        print("Error: --workers must be at least 1", file=sys.stderr)
        return USER_ERROR

    try:
        context = BuildContext.from_directory(root, exclude=[out])
        generator = Generator(
            suffix=ns.suffix,
            workers=ns.workers,
            check_determinism=not ns.no_determinism_check,
        )
    except HostSyntaxError as exc:
        print(f"Error: cannot parse host module {exc}", file=sys.stderr)
        return RUNTIME_ERROR
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return USER_ERROR

    report = generator.execute(context)
    files = render_package(context)

    if ns.check:
        stale = stale_files(out, files)
        if stale:
            print(f"✘ {out} is out of date: {', '.join(stale)}", file=sys.stderr)
            return STALE_OUTPUT
        print(f"✔ {out} is up to date")
        return SUCCESS

    write_package(out, files)
    print(
        f"✔ {report.candidates} compile-time functions evaluated "
        f"({report.failed} failed), written to {out}"
    )
    return SUCCESS


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
