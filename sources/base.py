#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Base class for classification oracles.
The cycle only needs one call: request text in, reply text out.
"""

from abc import ABC, abstractmethod


class ClassificationOracle(ABC):
    """
    Abstract base class for classification oracles.

    Implementations raise orchestrator.errors.OracleUnavailable when the
    call fails. An empty reply is not an error; it just yields no decisions.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Oracle name identifier"""
        pass

    @abstractmethod
    def classify(self, request_text: str) -> str:
        """
        Send one classification request.

        Args:
            request_text: Prompt built by PromptBuilder

        Returns:
            Free-form reply text

        Raises:
            OracleUnavailable: network, HTTP or auth failure
        """
        pass

    def log(self, message: str) -> None:
        """Log a message"""
        print(f"[{self.name}] {message}")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
