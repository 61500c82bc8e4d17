#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Mover Agent - Applies validated decisions to the filesystem.

Responsibilities:
- Create the destination folder when needed
- Build a filesystem-safe target name, keeping the original extension
- Move with replace-on-collision semantics
- Report failures per file without stopping the batch

An existing target is replaced, never suffixed: applying the same decision
twice leaves one file.
"""

import errno
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from orchestrator.prompts import Decision

from .base import BaseAgent
from .scanner import AUDIO_EXTENSIONS, CandidateFile


@dataclass
class MoveResult:
    """Outcome of applying one decision"""
    source: Path
    target: Optional[Path]
    folder_name: str
    success: bool = False
    error: Optional[str] = None
    dry_run: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": str(self.source),
            "target": str(self.target) if self.target else None,
            "folder_name": self.folder_name,
            "success": self.success,
            "error": self.error,
            "dry_run": self.dry_run
        }


def replace_file(source: Path, target: Path) -> None:
    """
    Move source to target, replacing any existing target.

    Same device: a single os.replace. Across devices: copy into a temporary
    file next to the target, swap it in, then delete the source. If the copy
    fails the temporary file is removed and the source is left as it was.
    """
    try:
        os.replace(source, target)
        return
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise

    temp = target.with_name(f".{target.name}.partial")
    try:
        shutil.copy2(source, temp)
        os.replace(temp, target)
    except OSError:
        if temp.exists():
            temp.unlink()
        raise
    source.unlink()


class MoverAgent(BaseAgent):
    """
    Mover agent for applying validated decisions.
    """

    # Characters not allowed in filenames on common platforms
    REPLACEMENTS = {
        '/': ' - ',
        '\\': ' - ',
        ':': ' -',
        '"': "'",
        '<': '',
        '>': '',
        '|': '',
        '?': '',
        '*': '',
        '\x00': '',
    }
    MAX_NAME_LENGTH = 200

    def __init__(self, settings, dry_run: bool = False):
        super().__init__(settings)
        self.dry_run = dry_run

    @property
    def name(self) -> str:
        return "Mover"

    def process(self, item: Tuple[CandidateFile, Decision]) -> Dict[str, Any]:
        """Apply one (file, decision) pair; used by process_batch"""
        candidate, decision = item
        result = self.apply(candidate, decision, self.settings.root)
        return {
            "status": "success" if result.success else "error",
            "result": result
        }

    def process_batch(
        self,
        items: List[Tuple[CandidateFile, Decision]],
        on_item: Optional[Callable[[Any, Dict[str, Any]], None]] = None
    ) -> Dict[str, Any]:
        """
        Apply every (file, decision) pair.

        An exception from one pair is logged and counted as a failure; the
        remaining pairs still run. The items list in the summary lines up
        one-to-one with the input.

        Args:
            items: Pairs, in order
            on_item: Optional callback(item, outcome) after each pair

        Returns:
            {'total', 'success', 'failed', 'items'}
        """
        summary = {"total": len(items), "success": 0, "failed": 0, "items": []}

        for item in items:
            try:
                outcome = self.process(item)
            except Exception as e:
                outcome = {"status": "error", "error": str(e)}
                self.log_error(f"{item[0].name}: {e}")

            if outcome.get("status") == "success":
                summary["success"] += 1
            else:
                summary["failed"] += 1
            summary["items"].append(outcome)

            if on_item:
                on_item(item, outcome)

        return summary

    def apply(self, candidate: CandidateFile, decision: Decision, root: Path) -> MoveResult:
        """
        Move and rename one file.

        Args:
            candidate: File from this cycle's inventory
            decision: Validated decision for it
            root: Library root holding the destination folders

        Returns:
            MoveResult; on failure the source file is untouched
        """
        folder = Path(root) / decision.folder_name
        target = folder / self.target_name(candidate, decision.new_base_name)
        result = MoveResult(
            source=candidate.path,
            target=target,
            folder_name=decision.folder_name,
            dry_run=self.dry_run
        )

        if self.dry_run:
            result.success = True
            self.log(f"[DRY RUN] Would move {candidate.name} → {decision.folder_name}/{target.name}")
            return result

        try:
            folder.mkdir(parents=True, exist_ok=True)
            if candidate.path.resolve() != target.resolve():
                replace_file(candidate.path, target)
        except OSError as e:
            result.error = str(e)
            self.log_error(f"Could not move {candidate.name}: {e}. Left in inbox.")
            return result

        result.success = True
        self.log(f"Moved & renamed {candidate.name} → {decision.folder_name}/{target.name}")
        return result

    def target_name(self, candidate: CandidateFile, new_base_name: str) -> str:
        """
        Final filename: cleaned proposed name plus the original extension.

        An extension echoed by the oracle is dropped; the file's own
        extension is always the one used.
        """
        base = self.strip_extension(new_base_name, candidate.extension)
        base = self.make_filename_safe(base)
        if not base:
            base = candidate.stem
        return f"{base}{candidate.extension}"

    @staticmethod
    def strip_extension(name: str, original_extension: str) -> str:
        """Remove a trailing original or known audio extension (any case)"""
        known = {ext.lower() for ext in AUDIO_EXTENSIONS}
        if original_extension:
            known.add(original_extension.lower())

        lowered = name.lower()
        for ext in sorted(known, key=len, reverse=True):
            if lowered.endswith(ext):
                return name[:-len(ext)].rstrip()
        return name

    def make_filename_safe(self, name: str) -> str:
        """
        Make a string safe for use as a filename.

        Args:
            name: Original string

        Returns:
            Safe filename string
        """
        for old, new in self.REPLACEMENTS.items():
            name = name.replace(old, new)

        # Clean up multiple spaces
        name = ' '.join(name.split())

        # Leading dots would hide the file; trailing dots/spaces break Windows
        name = name.lstrip('.').rstrip('. ')

        if len(name) > self.MAX_NAME_LENGTH:
            name = name[:self.MAX_NAME_LENGTH].strip()

        return name
