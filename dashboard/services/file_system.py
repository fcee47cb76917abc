import logging
import re
import shutil
from datetime import date, datetime, timedelta
from pathlib import Path

from dashboard.core.config import data_dir
from dashboard.core.errors import Forbidden, NotFound, ValidationFailed
from dashboard.schemas.file_system import DataDirectoryInfo, DeleteResult, DirectoryListing, FileItem

logger = logging.getLogger(__name__)

PROTECTED_FILES = frozenset({".env", "config.json", "package.json"})
ALLOWED_EXTENSIONS = frozenset({".json", ".txt", ".log", ".tmp", ".cache"})
DATE_DIR_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def resolve_within(root: Path, relative_path: str) -> Path:
    """Resolve ``relative_path`` under ``root``; refuse anything that escapes it."""
    target = (root / relative_path.lstrip("/")).resolve()
    if target != root and root not in target.parents:
        raise Forbidden("Access denied: path is outside of the data directory")
    return target


def _relative(root: Path, path: Path) -> str:
    return path.relative_to(root).as_posix()


def list_directory(relative_path: str = "", root: Path | None = None) -> DirectoryListing:
    root = (root or data_dir()).resolve()
    target = resolve_within(root, relative_path)
    if not target.exists():
        raise NotFound(f"Path does not exist: {relative_path or '/'}")
    if not target.is_dir():
        raise ValidationFailed(f"Path is not a directory: {relative_path or '/'}")

    items = []
    for entry in target.iterdir():
        stat = entry.stat()
        is_dir = entry.is_dir()
        items.append(FileItem(
            name=entry.name,
            type="directory" if is_dir else "file",
            path=_relative(root, entry),
            size=None if is_dir else stat.st_size,
            modified_at=datetime.fromtimestamp(stat.st_mtime),
        ))
    # Directories first, then files, each alphabetically
    items.sort(key=lambda item: (item.type != "directory", item.name.lower()))

    return DirectoryListing(
        path=relative_path or "/",
        items=items,
        total_files=sum(1 for item in items if item.type == "file"),
        total_directories=sum(1 for item in items if item.type == "directory"),
    )


def deletion_refusal(path: Path) -> str | None:
    """Reason ``path`` may not be deleted, or None when it is safe."""
    if path.name.lower() in PROTECTED_FILES:
        return "File is protected and cannot be deleted"
    if path.is_dir():
        for child in path.rglob("*"):
            if child.name.lower() in PROTECTED_FILES:
                return "Directory contains protected files and cannot be deleted"
        return None
    suffix = path.suffix.lower()
    if suffix and suffix not in ALLOWED_EXTENSIONS:
        return f"File extension '{suffix}' is not allowed for deletion"
    return None


def delete_item(relative_path: str, root: Path | None = None) -> DeleteResult:
    root = (root or data_dir()).resolve()
    target = resolve_within(root, relative_path)
    if target == root:
        raise Forbidden("The data directory itself cannot be deleted")
    if not target.exists():
        raise NotFound(f"Path does not exist: {relative_path}")

    reason = deletion_refusal(target)
    if reason:
        raise Forbidden(reason)

    if target.is_dir():
        shutil.rmtree(target)
        item_type = "directory"
    else:
        target.unlink()
        item_type = "file"
    logger.info("Deleted %s %s", item_type, relative_path)
    return DeleteResult(path=relative_path, type=item_type, message=f"Successfully deleted {item_type}")


def data_directory_info(root: Path | None = None) -> DataDirectoryInfo:
    root = (root or data_dir()).resolve()
    return DataDirectoryInfo(
        data_dir=str(root),
        exists=root.is_dir(),
        protected_files=sorted(PROTECTED_FILES),
        allowed_extensions=sorted(ALLOWED_EXTENSIONS),
    )


def clean_up_dated_directories(retention_days: int, today: date | None = None, root: Path | None = None) -> list[str]:
    """Delete ``YYYY-MM-DD`` directories at least ``retention_days`` old."""
    root = (root or data_dir()).resolve()
    if not root.is_dir():
        logger.warning("Data directory %s does not exist", root)
        return []

    cutoff = (today or date.today()) - timedelta(days=retention_days)
    deleted = []
    for entry in sorted(root.iterdir()):
        if not entry.is_dir() or not DATE_DIR_PATTERN.match(entry.name):
            continue
        try:
            entry_date = date.fromisoformat(entry.name)
        except ValueError:
            continue
        if entry_date > cutoff:
            continue
        reason = deletion_refusal(entry)
        if reason:
            logger.warning("Skipping %s: %s", entry.name, reason)
            continue
        shutil.rmtree(entry)
        deleted.append(entry.name)
    logger.info("Removed %d dated data directories", len(deleted))
    return deleted
