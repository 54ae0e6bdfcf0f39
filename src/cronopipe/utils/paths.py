"""Directory and link materialization for log files."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Literal

from ..core.errors import PathTooLongError

LinkKind = Literal["symlink", "hardlink"]

__all__ = [
    "LinkKind",
    "FILE_MODE",
    "DIR_MODE",
    "MAX_PATH",
    "DirectoryMaterializer",
    "render_path",
    "refresh_link",
]

FILE_MODE = 0o664
DIR_MODE = 0o775
MAX_PATH = 1024

logger = logging.getLogger(__name__)


def render_path(template: str, moment: datetime, *, max_length: int = MAX_PATH) -> Path:
    """Format ``template`` for ``moment`` and enforce ``max_length`` (in bytes)."""

    rendered = moment.strftime(template)
    if len(os.fsencode(rendered)) > max_length:
        raise PathTooLongError(f"Log file name exceeds {max_length} bytes: {rendered[:64]}...")
    return Path(rendered)


class DirectoryMaterializer:
    """Create missing parent directories of log files.

    Several cronopipe processes may be creating the same directories at once,
    so a directory that appears between the check and ``mkdir`` is fine.

    The parent of the last file handled is remembered and its prefixes are not
    checked again.  The cache is advisory: when the parent is still missing
    after a pass, the walk is repeated without it.
    """

    def __init__(self, *, mode: int = DIR_MODE) -> None:
        self.mode = mode
        self._verified: Path | None = None

    @property
    def last_verified(self) -> Path | None:
        return self._verified

    def ensure_directories(self, path: str | Path) -> Path:
        """Create every missing directory above ``path`` and return its parent."""

        parent = Path(path).parent
        logger.debug("Creating missing components of \"%s\"", path)
        try:
            self._create_missing(parent, use_cache=True)
        except FileNotFoundError:
            logger.debug("Known prefix of \"%s\" vanished -- walking again", path)
        if not parent.is_dir():
            self._verified = None
            self._create_missing(parent, use_cache=False)
        self._verified = parent
        return parent

    def _known(self, directory: Path) -> bool:
        verified = self._verified
        return verified is not None and (directory == verified or directory in verified.parents)

    def _create_missing(self, parent: Path, *, use_cache: bool) -> None:
        for directory in _prefixes(parent):
            if use_cache and self._known(directory):
                logger.debug("Initial prefix \"%s\" known to exist", directory)
                continue
            if directory.is_dir():
                continue
            logger.debug("Directory \"%s\" does not exist -- creating", directory)
            try:
                directory.mkdir(mode=self.mode)
            except FileExistsError:
                logger.debug("Directory \"%s\" created concurrently", directory)


def _prefixes(parent: Path) -> list[Path]:
    """Return the directories from the top of ``parent`` down, without the anchor."""

    chain = [*reversed(parent.parents), parent]
    anchor = Path(parent.anchor) if parent.anchor else Path(".")
    return [directory for directory in chain if directory != anchor and directory != Path(".")]


def _remove(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass


def _points_at(link: Path, target: Path, kind: LinkKind) -> bool:
    try:
        if kind == "symlink":
            return link.is_symlink() and os.readlink(link) == str(target)
        return not link.is_symlink() and os.path.samefile(link, target)
    except OSError:
        return False


def _make_link(target: str | Path, link: Path, kind: LinkKind) -> None:
    try:
        if kind == "symlink":
            os.symlink(target, link)
        else:
            os.link(target, link)
    except FileExistsError:
        logger.debug("Link \"%s\" created concurrently", link)


def _repoint_previous(link: Path, previous: Path) -> None:
    if link.is_symlink():
        # Relative link text is resolved from the directory holding the link.
        old_target: str | Path = os.path.join(link.parent, os.readlink(link))
        if not os.path.isabs(old_target):
            old_target = os.path.relpath(old_target, previous.parent)
        kind: LinkKind = "symlink"
    else:
        old_target = link
        kind = "hardlink"
    _remove(previous)
    _make_link(old_target, previous, kind)
    logger.debug("Previous link \"%s\" -> \"%s\"", previous, old_target)


def refresh_link(
    target: str | Path,
    link_name: str | Path,
    kind: LinkKind = "symlink",
    previous_link: str | Path | None = None,
) -> None:
    """Point ``link_name`` at ``target``.

    An existing link is removed before the new one is created.  With
    ``previous_link`` the old target is linked there first, so at every moment
    at least one of the two links resolves.
    """

    target = Path(target)
    link = Path(link_name)
    if _points_at(link, target, kind):
        return
    if previous_link is not None and os.path.lexists(link):
        _repoint_previous(link, Path(previous_link))
    _remove(link)
    _make_link(target, link, kind)
    logger.debug("Linked \"%s\" -> \"%s\" (%s)", link, target, kind)
