#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Validator Agent - Filters parsed decisions before anything touches disk.

Responsibilities:
- Reject folders outside the allow-list (unless folder creation is enabled)
- Reject filenames the oracle was never given
- Report every rejection as a "left in inbox" outcome
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from orchestrator.prompts import Decision

from .base import BaseAgent


@dataclass(frozen=True)
class Rejection:
    """A decision that will not be applied this cycle"""
    original_filename: str
    reason: str


class ValidatorAgent(BaseAgent):
    """
    Validator agent for oracle decisions.

    With allow_folder_creation off (the default) only folders present in the
    allow-list snapshot can receive files. With it on, unknown folders are
    accepted as long as the name is a single safe path component.
    """

    RESERVED_NAMES = {'', '.', '..'}

    @property
    def name(self) -> str:
        return "Validator"

    def validate(
        self,
        decisions: Dict[str, Decision],
        valid_folders: Iterable[str],
        submitted_files: Iterable[str]
    ) -> Tuple[Dict[str, Decision], List[Rejection]]:
        """
        Split decisions into accepted and rejected.

        Args:
            decisions: Parsed decisions keyed by original filename
            valid_folders: Allow-list taken at the start of the cycle
            submitted_files: Filenames sent to the oracle this cycle

        Returns:
            (accepted decisions keyed by filename, rejections)
        """
        valid_folders = set(valid_folders)
        submitted_files = set(submitted_files)
        accepted: Dict[str, Decision] = {}
        rejected: List[Rejection] = []

        for filename, decision in decisions.items():
            reason = self._rejection_reason(decision, valid_folders, submitted_files)
            if reason:
                rejected.append(Rejection(filename, reason))
                self.log(f"Left in inbox: {filename} ({reason})")
            else:
                accepted[filename] = decision

        return accepted, rejected

    def _rejection_reason(self, decision: Decision, valid_folders, submitted_files) -> str:
        if decision.original_filename not in submitted_files:
            return "not submitted this cycle"

        folder = decision.folder_name
        if folder in valid_folders:
            return ""

        if not self.settings.allow_folder_creation:
            return f"unknown folder '{folder}'"

        if not self.is_safe_folder_name(folder):
            return f"unsafe folder name '{folder}'"

        if folder == self.settings.inbox.name and not self.settings.inbox_is_root:
            return "folder is the inbox"

        return ""

    def is_safe_folder_name(self, folder: str) -> bool:
        """True if folder is one plain path component"""
        if folder in self.RESERVED_NAMES:
            return False
        if '/' in folder or '\\' in folder or '\x00' in folder:
            return False
        if folder.startswith('.') and self.settings.skip_hidden:
            return False
        return True
