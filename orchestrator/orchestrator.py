#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Inbox Orchestrator - runs the sorting cycle.

One cycle:
    Scan -> Prompt -> Oracle -> Parse -> Validate -> Apply

Usage:
    from orchestrator.config import ConfigManager
    from orchestrator.orchestrator import create_orchestrator

    settings = ConfigManager('music-sort.yaml').build_settings()
    orch = create_orchestrator(settings)
    report = orch.run_cycle()
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from agents import MoverAgent, ScannerAgent, ValidatorAgent
from agents.mover import MoveResult
from agents.validator import Rejection
from sources.base import ClassificationOracle
from sources.openai_chat import OpenAIChatOracle
from utilities.tag_normalizer import TagNormalizer

from .config import SorterSettings
from .errors import FilesystemError, OracleUnavailable
from .prompts import PromptBuilder, ResponseParser


class CycleState(Enum):
    """Cycle phase"""
    IDLE = "idle"
    SCANNING = "scanning"
    NO_FILES_FOUND = "no_files_found"
    AWAITING_ORACLE = "awaiting_oracle"
    PARSING = "parsing"
    VALIDATING = "validating"
    APPLYING = "applying"


@dataclass
class CycleReport:
    """What one cycle did. final_state is the last phase the cycle reached."""
    candidates: int = 0
    oracle_called: bool = False
    oracle_error: Optional[str] = None
    final_state: CycleState = CycleState.IDLE
    moves: List[MoveResult] = field(default_factory=list)
    left_in_inbox: List[Rejection] = field(default_factory=list)
    tag_results: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def moved(self) -> int:
        return sum(1 for m in self.moves if m.success)

    @property
    def failed(self) -> int:
        return sum(1 for m in self.moves if not m.success)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "candidates": self.candidates,
            "oracle_called": self.oracle_called,
            "oracle_error": self.oracle_error,
            "final_state": self.final_state.value,
            "moved": self.moved,
            "failed": self.failed,
            "moves": [m.to_dict() for m in self.moves],
            "left_in_inbox": [
                {"filename": r.original_filename, "reason": r.reason}
                for r in self.left_in_inbox
            ]
        }


class InboxOrchestrator:
    """
    Central orchestrator for inbox sorting.

    Holds no state between cycles: every run re-reads the filesystem, so
    repeated runs are safe. Cycles must not overlap; run_forever() never
    starts one before the previous has returned.
    """

    def __init__(
        self,
        settings: SorterSettings,
        oracle: ClassificationOracle,
        dry_run: bool = False
    ):
        """
        Initialize orchestrator.

        Args:
            settings: Frozen configuration
            oracle: Classification oracle
            dry_run: Report planned moves without touching disk
        """
        self.settings = settings
        self.oracle = oracle
        self.dry_run = dry_run

        # Initialize agents
        self.scanner = ScannerAgent(settings)
        self.validator = ValidatorAgent(settings)
        self.mover = MoverAgent(settings, dry_run=dry_run)
        self.tagger = TagNormalizer(dry_run=dry_run, skip_hidden=settings.skip_hidden)

        self.prompt_builder = PromptBuilder(allow_folder_creation=settings.allow_folder_creation)
        self.parser = ResponseParser(strict=not settings.lenient_parsing)

        self.state = CycleState.IDLE
        self._state_callback: Optional[Callable[[CycleState], None]] = None

    def set_state_callback(self, callback: Callable[[CycleState], None]) -> None:
        """
        Set a callback fired on every state change.

        Args:
            callback: Function(state)
        """
        self._state_callback = callback

    def _enter(self, state: CycleState) -> None:
        self.state = state
        if self._state_callback:
            self._state_callback(state)

    def log(self, message: str) -> None:
        print(f"[Cycle] {message}")

    # ==================== Cycle ====================

    def run_cycle(self) -> CycleReport:
        """
        Run one complete scan-classify-apply pass.

        Returns:
            CycleReport

        Raises:
            FilesystemError: root or inbox unreadable (the cycle is aborted)
        """
        report = CycleReport()

        try:
            self._enter(CycleState.SCANNING)
            files = self.scanner.list_candidate_files()
            report.candidates = len(files)

            if not files:
                self._enter(CycleState.NO_FILES_FOUND)
                report.final_state = CycleState.NO_FILES_FOUND
                self.log("No files to process.")
                return report

            valid_folders = self.scanner.list_valid_folders()

            self._enter(CycleState.AWAITING_ORACLE)
            request = self.prompt_builder.build_request(valid_folders, files)
            report.oracle_called = True
            try:
                reply = self.oracle.classify(request)
            except OracleUnavailable as e:
                report.oracle_error = str(e)
                report.final_state = CycleState.AWAITING_ORACLE
                report.left_in_inbox.extend(Rejection(f.name, "oracle unavailable") for f in files)
                self.log(f"Oracle unavailable, {len(files)} file(s) stay in inbox: {e}")
                return report

            self._enter(CycleState.PARSING)
            decisions = self.parser.parse(reply, submitted=[f.name for f in files])

            self._enter(CycleState.VALIDATING)
            accepted, rejected = self.validator.validate(
                decisions,
                valid_folders,
                [f.name for f in files]
            )
            report.left_in_inbox.extend(rejected)

            self._enter(CycleState.APPLYING)
            report.final_state = CycleState.APPLYING
            self._apply(files, accepted, report)

            return report

        finally:
            self._enter(CycleState.IDLE)

    def _apply(self, files, accepted, report: CycleReport) -> None:
        pairs = []
        for candidate in files:
            decision = accepted.get(candidate.name)
            if decision is None:
                if not any(r.original_filename == candidate.name for r in report.left_in_inbox):
                    report.left_in_inbox.append(Rejection(candidate.name, "not classified"))
                    self.mover.log(f"Left in inbox: {candidate.name} (not classified)")
                continue
            pairs.append((candidate, decision))

        batch = self.mover.process_batch(pairs)

        for (candidate, decision), item in zip(pairs, batch["items"]):
            result = item.get("result")
            if result is None:
                result = MoveResult(
                    source=candidate.path,
                    target=None,
                    folder_name=decision.folder_name,
                    error=item.get("error")
                )
            report.moves.append(result)

            if result.success and not result.dry_run and self.settings.normalize_after_move:
                tag_result = self.tagger.normalize_file(result.target)
                report.tag_results.append(tag_result)
                if tag_result['status'] == 'normalized':
                    result.target = Path(tag_result['new_path'])
                elif tag_result['status'] == 'error':
                    self.log(f"WARNING: tags not updated for {result.target.name}: {tag_result['error']}")

        self.log(
            f"{report.moved} moved, {report.failed} failed, "
            f"{len(report.left_in_inbox)} left in inbox"
        )

    # ==================== Scheduling ====================

    def run_forever(
        self,
        interval: Optional[float] = None,
        max_cycles: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic
    ) -> int:
        """
        Run cycles at a fixed interval until interrupted.

        A cycle that overruns its slot makes the loop skip the missed ticks
        rather than run them back to back.

        Args:
            interval: Seconds between cycle starts (defaults to settings)
            max_cycles: Stop after this many cycles (None = forever)

        Returns:
            Number of cycles run
        """
        interval = interval or self.settings.interval
        cycles = 0
        self.log(f"Starting batch sorter on root: {self.settings.root}")

        try:
            while max_cycles is None or cycles < max_cycles:
                started = clock()
                try:
                    self.run_cycle()
                except FilesystemError as e:
                    self.log(f"ERROR: {e}. Retrying next tick.")
                except Exception as e:
                    self.log(f"ERROR: unexpected failure: {e}. Retrying next tick.")
                cycles += 1

                if max_cycles is not None and cycles >= max_cycles:
                    break

                elapsed = clock() - started
                sleep(interval - (elapsed % interval))
        except KeyboardInterrupt:
            self.log("Stopped.")

        return cycles

    # ==================== Helpers ====================

    def pending(self) -> Dict[str, Any]:
        """Allow-list and inbox files as the next cycle would see them"""
        return {
            'root': str(self.settings.root),
            'inbox': str(self.settings.inbox),
            'folders': sorted(self.scanner.list_valid_folders()),
            'files': [f.name for f in self.scanner.list_candidate_files()]
        }


# Convenience function
def create_orchestrator(
    settings: SorterSettings,
    oracle: Optional[ClassificationOracle] = None,
    dry_run: bool = False
) -> InboxOrchestrator:
    """Create an orchestrator, using the Chat Completions oracle by default"""
    oracle = oracle or OpenAIChatOracle.from_settings(settings)
    return InboxOrchestrator(settings, oracle, dry_run=dry_run)
