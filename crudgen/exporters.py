# File: crudgen/exporters.py
"""
crudgen - Packager & Filesystem Exporter
=========================================
The two delivery collaborators the orchestrator hands files to:

    build_zip       ``Callable[[Sequence[GeneratedFile]], bytes]``
                    entries named ``{tableName}/{filePath}``
    PathExporter    writes files under ``<base>/<genPath>`` atomically
                    (write-to-temp then ``os.replace``)

Both are deterministic: the archive uses a fixed entry timestamp and
registry order, so the same files always give the same bytes.
"""

from __future__ import annotations

import io
import json
import logging
import os
import posixpath
import tempfile
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence, Set, Tuple, Union

from crudgen.errors import PackagingError
from crudgen.models import GeneratedFile
from crudgen.utils import Timer, count_lines, sha256_hex

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.exporters")

_ZIP_TIMESTAMP: Tuple[int, int, int, int, int, int] = (1980, 1, 1, 0, 0, 0)


def _entry_name(file: GeneratedFile) -> str:
    prefix: str = file.table_name or "common"
    return posixpath.join(prefix, file.file_path)


def _safe_relative(path: str) -> bool:
    """True when *path* stays inside its root (no absolute part, no '..')."""
    norm: str = posixpath.normpath(path)
    return not (norm.startswith("/") or norm == ".." or norm.startswith("../"))


# ---------------------------------------------------------------------------
# ZIP packager
# ---------------------------------------------------------------------------


def build_zip(files: Sequence[GeneratedFile]) -> bytes:
    """
    Pack files into an in-memory ZIP archive.

    Raises:
        PackagingError: two files map to the same entry, or an entry
            would escape the archive root.
    """
    buffer = io.BytesIO()
    seen: Set[str] = set()
    with Timer("build zip") as timer:
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for file in files:
                name: str = _entry_name(file)
                if not _safe_relative(name):
                    raise PackagingError(
                        f"Unsafe archive entry '{name}'",
                        table_name=file.table_name,
                        template_key=file.template_key,
                    )
                if name in seen:
                    raise PackagingError(
                        f"Duplicate archive entry '{name}'",
                        table_name=file.table_name,
                        template_key=file.template_key,
                    )
                seen.add(name)
                info = zipfile.ZipInfo(name, date_time=_ZIP_TIMESTAMP)
                info.compress_type = zipfile.ZIP_DEFLATED
                info.external_attr = 0o644 << 16
                archive.writestr(info, file.content.encode("utf-8"))
    data: bytes = buffer.getvalue()
    logger.info("Packed %d file(s) into %d bytes in %.3fs.", len(seen), len(data), timer.elapsed)
    return data


# ---------------------------------------------------------------------------
# Filesystem exporter
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single exported file."""

    relative_path: str
    absolute_path: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(frozen=False, slots=True)
class ExportResult:
    """What ``PathExporter.export`` wrote, skipped and failed on."""

    root: str = ""
    written: List[FileRecord] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root": self.root,
            "success": self.success,
            "written": [
                {
                    "relative_path": r.relative_path,
                    "size_bytes": r.size_bytes,
                    "line_count": r.line_count,
                    "sha256": r.sha256,
                }
                for r in self.written
            ],
            "skipped": list(self.skipped),
            "errors": list(self.errors),
        }

    def to_json(self, indent_size: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent_size, ensure_ascii=False)


class PathExporter:
    """
    Writes generated files below ``base_dir``.

    ``gen_path`` is interpreted relative to ``base_dir``; ``"/"`` means
    the base itself. Existing files are left alone unless
    ``overwrite=True``. Each file write is atomic; a failed file is
    recorded and the rest still get written.
    """

    def __init__(self, base_dir: Union[str, Path], *, overwrite: bool = False) -> None:
        self._base_dir: Path = Path(base_dir)
        self._overwrite: bool = overwrite

    def resolve_root(self, gen_path: str) -> Path:
        relative: str = gen_path.strip().lstrip("/\\")
        if relative and not _safe_relative(relative.replace("\\", "/")):
            raise ValueError(f"genPath escapes the output directory: {gen_path!r}")
        return (self._base_dir / relative) if relative else self._base_dir

    def export(self, files: Sequence[GeneratedFile], gen_path: str = "/") -> ExportResult:
        root: Path = self.resolve_root(gen_path)
        result = ExportResult(root=str(root))
        with Timer("export files") as timer:
            for file in files:
                rel: str = _entry_name(file)
                if not _safe_relative(rel):
                    result.errors.append(f"Refusing to write outside the output root: {rel}")
                    continue
                target: Path = root / rel
                if target.exists() and not self._overwrite:
                    result.skipped.append(rel)
                    logger.debug("Skipped existing file: %s", target)
                    continue
                try:
                    result.written.append(self._write_single_file(target, file.content, rel))
                except OSError as exc:
                    msg: str = f"Failed to write {rel}: {type(exc).__name__}: {exc}"
                    result.errors.append(msg)
                    logger.error(msg)
        result.elapsed_seconds = timer.elapsed
        logger.info(
            "Exported to %s: %d written, %d skipped, %d failed.",
            root,
            len(result.written),
            len(result.skipped),
            len(result.errors),
        )
        return result

    def _write_single_file(self, target: Path, content: str, rel: str) -> FileRecord:
        target.parent.mkdir(parents=True, exist_ok=True)
        encoded: bytes = content.encode("utf-8")
        self._atomic_write(target, encoded)
        logger.debug("Wrote file: %s (%d bytes).", rel, len(encoded))
        return FileRecord(
            relative_path=rel,
            absolute_path=str(target),
            size_bytes=len(encoded),
            line_count=count_lines(content),
            sha256=sha256_hex(content),
        )

    @staticmethod
    def _atomic_write(target: Path, data: bytes) -> None:
        """Write via a temp file in the target directory, then ``os.replace``."""
        fd, tmp_path = tempfile.mkstemp(
            dir=str(target.parent),
            prefix=f".{target.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, target)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


__all__: List[str] = [
    "build_zip",
    "FileRecord",
    "ExportResult",
    "PathExporter",
]
