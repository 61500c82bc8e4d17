#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Scanner Agent - Inventories the inbox and the destination folders.

Responsibilities:
- List regular files directly inside the inbox (the candidates)
- List immediate subdirectories of the root (the folder allow-list)
- Cap each batch so the classification request stays bounded

Scanning is read-only. Files past the batch cap are simply picked up by a
later cycle.
"""

import fnmatch
from dataclasses import dataclass
from pathlib import Path
from typing import List, Set

from orchestrator.errors import FilesystemError

from .base import BaseAgent


AUDIO_EXTENSIONS = {'.mp3', '.flac', '.m4a', '.mp4', '.ogg', '.wav', '.wma', '.aac', '.opus'}


@dataclass(frozen=True)
class CandidateFile:
    """A file sitting directly in the inbox at scan time"""
    path: Path

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def stem(self) -> str:
        return self.path.stem

    @property
    def extension(self) -> str:
        """Extension including the dot, as found on disk ('' if none)"""
        return self.path.suffix


class ScannerAgent(BaseAgent):
    """
    Scanner agent for the inbox and destination folders.
    """

    @property
    def name(self) -> str:
        return "Scanner"

    def list_candidate_files(self, inbox: Path = None) -> List[CandidateFile]:
        """
        List files eligible for this cycle.

        Args:
            inbox: Directory to scan (defaults to the configured inbox)

        Returns:
            Up to batch_size candidates, sorted by filename

        Raises:
            FilesystemError: inbox missing or unreadable
        """
        inbox = Path(inbox or self.settings.inbox)
        candidates = []

        for entry in self._iter_dir(inbox):
            if self.settings.skip_hidden and entry.name.startswith('.'):
                continue
            if not entry.is_file():
                continue
            if not fnmatch.fnmatch(entry.name, self.settings.file_pattern):
                continue
            if self.settings.audio_only and entry.suffix.lower() not in AUDIO_EXTENSIONS:
                continue
            candidates.append(CandidateFile(path=entry))

        candidates.sort(key=lambda c: c.name)

        if len(candidates) > self.settings.batch_size:
            self.log(
                f"{len(candidates)} files in inbox, taking {self.settings.batch_size} "
                f"this cycle; the rest wait for the next one"
            )
            candidates = candidates[:self.settings.batch_size]

        return candidates

    def list_valid_folders(self, root: Path = None) -> Set[str]:
        """
        List destination folder names (immediate subdirectories of root).

        The inbox is never a destination, even when it lives under root.

        Raises:
            FilesystemError: root missing or unreadable
        """
        root = Path(root or self.settings.root)
        inbox = Path(self.settings.inbox)
        folders = set()

        for entry in self._iter_dir(root):
            if self.settings.skip_hidden and entry.name.startswith('.'):
                continue
            if not entry.is_dir():
                continue
            if entry.resolve() == inbox.resolve():
                continue
            folders.add(entry.name)

        return folders

    def _iter_dir(self, path: Path) -> List[Path]:
        if not path.is_dir():
            raise FilesystemError(f"Directory does not exist: {path}")
        try:
            return list(path.iterdir())
        except OSError as e:
            raise FilesystemError(f"Cannot read directory {path}: {e}") from e
