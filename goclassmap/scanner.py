"""
Directory scanning.

Finds Go source files, parses them and groups them into namespaced packages in
a deterministic order.  Any unreadable or malformed file aborts the scan.
"""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from . import nodes
from .builder import build_model
from .errors import ScanError
from .goparser import parse_file
from .model import Registry

__all__ = ["ScannerConfig", "scan_directories", "build_class_diagram"]

logger = logging.getLogger(__name__)

_MODULE_LINE = re.compile(r'^\s*module\s+"?([^\s"]+)"?', re.MULTILINE)

GoModule = Tuple[Path, str]


@dataclass
class ScannerConfig:
    """
    Configuration for the scanner.

    recursive:
        Descend into sub-directories.  Hidden directories and the entries of
        ``skip`` are never entered.
    ignore:
        Directories to leave out, given as paths (as passed, absolute, or
        relative to the scanned root) or bare directory names.
    include_tests:
        Also read ``*_test.go`` files.
    module_base:
        First namespace segment when no ``go.mod`` is found; defaults to the
        name of the scanned directory.
    """

    recursive: bool = False
    ignore: Sequence[str] = ()
    include_tests: bool = False
    module_base: Optional[str] = None
    skip: Sequence[str] = ("vendor", "testdata")


def scan_directories(
    directories: Iterable[Union[str, Path]],
    config: Optional[ScannerConfig] = None,
) -> List[nodes.Package]:
    """Parse every Go package under ``directories``, in the order given."""
    if config is None:
        config = ScannerConfig()
    packages: List[nodes.Package] = []
    for directory in directories:
        root = Path(directory)
        if not root.is_dir():
            raise ScanError(f"Source directory does not exist or is not a directory: {root}")
        module = _find_go_module(root.resolve())
        if module is not None:
            logger.debug("Using module path %s from %s", module[1], module[0] / "go.mod")
        for path in _iter_directories(root, config):
            packages.extend(_scan_directory(path, root, module, config))
    return packages


def build_class_diagram(
    directories: Iterable[Union[str, Path]],
    config: Optional[ScannerConfig] = None,
) -> Registry:
    """Scan ``directories`` and build the finished model."""
    return build_model(scan_directories(directories, config))


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------

def _iter_directories(root: Path, config: ScannerConfig) -> Iterable[Path]:
    if not config.recursive:
        yield root
        return
    for dirpath, dirnames, _ in os.walk(root):
        current = Path(dirpath)
        # mutate dirnames in-place to prune the walk
        dirnames[:] = sorted(
            d
            for d in dirnames
            if not d.startswith(".")
            and d not in config.skip
            and not _is_ignored(current / d, root, config.ignore)
        )
        yield current


def _is_ignored(path: Path, root: Path, ignore: Sequence[str]) -> bool:
    if not ignore:
        return False
    candidates = {
        str(path),
        path.as_posix(),
        path.resolve().as_posix(),
        path.relative_to(root).as_posix(),
        path.name,
    }
    return any(entry.rstrip("/") in candidates for entry in ignore)


def _scan_directory(
    directory: Path,
    root: Path,
    module: Optional[GoModule],
    config: ScannerConfig,
) -> List[nodes.Package]:
    files = sorted(
        p
        for p in directory.iterdir()
        if p.is_file()
        and p.suffix == ".go"
        and (config.include_tests or not p.name.endswith("_test.go"))
    )
    if not files:
        return []
    by_package: Dict[str, List[nodes.SourceFile]] = {}
    for path in files:
        source = parse_file(path)
        by_package.setdefault(source.package, []).append(source)
    logger.info("Scanned %s: %d files, packages %s", directory, len(files), ", ".join(sorted(by_package)))
    return [
        nodes.Package(
            namespace=_namespace(directory, root, package_name, module, config),
            files=tuple(sources),
        )
        for package_name, sources in sorted(by_package.items())
    ]


def _namespace(
    directory: Path,
    root: Path,
    package_name: str,
    module: Optional[GoModule],
    config: ScannerConfig,
) -> str:
    """
    Dotted namespace of a package.

    Inside a Go module this is the package's import path, so qualified
    references resolved through imports line up with scanned namespaces.
    """
    if module is not None:
        module_dir, module_path = module
        rel = directory.resolve().relative_to(module_dir)
        parts = [*module_path.split("/"), *rel.parts]
        if package_name.endswith("_test"):
            parts[-1] += "_test"
        return ".".join(parts)

    resolved_root = root.resolve()
    base = config.module_base or resolved_root.name
    rel = directory.resolve().relative_to(resolved_root)
    parts = [base, *rel.parts]
    parts[-1] = package_name
    return ".".join(parts)


def _find_go_module(start: Path) -> Optional[GoModule]:
    for directory in (start, *start.parents):
        gomod = directory / "go.mod"
        if not gomod.is_file():
            continue
        try:
            text = gomod.read_text(encoding="utf-8")
        except OSError as exc:
            raise ScanError(f"Cannot read {gomod}: {exc}") from exc
        match = _MODULE_LINE.search(text)
        if match:
            return directory, match.group(1)
    return None
