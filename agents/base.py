#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Base class for the cycle's agents.
Scanner, Validator and Mover share settings access and prefixed logging.
"""

from abc import ABC, abstractmethod


class BaseAgent(ABC):
    """
    Abstract base class for cycle agents.

    Each agent owns one step of a sorting cycle:
    - Scanner: inbox files and the folder allow-list
    - Validator: decisions checked against that allow-list
    - Mover: accepted decisions applied on disk
    """

    def __init__(self, settings):
        """
        Args:
            settings: SorterSettings for this run
        """
        self.settings = settings

    @property
    @abstractmethod
    def name(self) -> str:
        """Prefix used in log lines"""
        pass

    def log(self, message: str) -> None:
        print(f"[{self.name}] {message}")

    def log_error(self, message: str) -> None:
        print(f"[{self.name}] ERROR: {message}")
