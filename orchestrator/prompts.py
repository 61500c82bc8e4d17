#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Classification prompt and response handling.

The oracle is asked for one line per file in the form:

    original_filename → folder_name → new_filename

PromptBuilder renders that request; ResponseParser turns the reply back into
Decision objects. The parser never raises: any line that does not match the
grammar is dropped.

Usage:
    from orchestrator.prompts import PromptBuilder, ResponseParser

    request = PromptBuilder().build_request({'Rock', 'Jazz'}, files)
    decisions = ResponseParser().parse(reply_text)
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, Sequence, Set

SEPARATOR = "→"
FIELD_COUNT = 3

# Characters stripped from both ends of every field
QUOTE_CHARS = "\"'`“”‘’«»"

# "- ", "* ", "• ", "1. " or "1) " echoed in front of the first field
LIST_MARKER = re.compile(r"^(?:[-*•]|\d+[.)])\s+")


CLASSIFY_TEMPLATE = """\
You are a smart music organizer. For each music file listed below, analyze the filename \
to infer the possible song, band, album, or mood. Use this context to decide the most \
appropriate folder AND suggest a new file name in the format: Artist - Song.

Valid folder names:
{folders}

Instructions:
1. Respond ONLY with lines in the format:
original_filename → folder_name → new_filename
2. Write one line per file and nothing else: no headings, no explanations, no numbering.
3. {folder_rule}
4. If you are unsure about a file, leave it out of your answer so it stays in the inbox. \
Do not guess.

Files:
{files}"""

STRICT_FOLDER_RULE = (
    "Use only the folder names listed above, spelled exactly as shown. "
    "Do not invent folders."
)

CREATE_FOLDER_RULE = (
    "Prefer the folder names listed above. If none fits, you may propose a new "
    "folder named after the artist."
)


@dataclass(frozen=True)
class Decision:
    """One parsed classification line (not yet validated)"""
    original_filename: str
    folder_name: str
    new_base_name: str


class PromptBuilder:
    """
    Renders the classification request.

    Output depends only on the inputs: folders are sorted, files keep the
    order they were given in.
    """

    def __init__(self, allow_folder_creation: bool = False):
        self.allow_folder_creation = allow_folder_creation

    def build_request(self, valid_folders: Iterable[str], files: Sequence) -> str:
        """
        Build the request text.

        Args:
            valid_folders: Allow-list of folder names
            files: CandidateFile objects or plain filenames

        Returns:
            Prompt text for the oracle
        """
        folder_lines = "\n".join(sorted(valid_folders))
        file_lines = "\n".join(f"- {getattr(f, 'name', f)}" for f in files)
        rule = CREATE_FOLDER_RULE if self.allow_folder_creation else STRICT_FOLDER_RULE

        return CLASSIFY_TEMPLATE.format(
            folders=folder_lines,
            files=file_lines,
            folder_rule=rule
        )


class ResponseParser:
    """
    Parses oracle replies into decisions keyed by original filename.

    strict=True (default): a line must split into exactly three fields.
    strict=False: three or more fields are accepted and the first three used.
    """

    def __init__(self, strict: bool = True):
        self.strict = strict

    def parse(self, response: str, submitted: Iterable[str] = None) -> Dict[str, Decision]:
        """
        Parse a reply.

        Args:
            response: Raw text returned by the oracle (may be empty or None)
            submitted: Filenames sent this cycle; used to tell a real
                "01. Song.mp3" from a "1." list number

        Returns:
            Mapping of original filename -> Decision; later lines win
        """
        submitted = set(submitted or ())
        decisions: Dict[str, Decision] = {}

        for line in (response or "").splitlines():
            decision = self.parse_line(line, submitted)
            if decision is not None:
                decisions[decision.original_filename] = decision

        return decisions

    def parse_line(self, line: str, submitted: Set[str] = frozenset()):
        """Return a Decision for a well-formed line, else None"""
        if SEPARATOR not in line:
            return None

        parts = line.split(SEPARATOR)
        if self.strict and len(parts) != FIELD_COUNT:
            return None
        if len(parts) < FIELD_COUNT:
            return None

        original, folder, new_name = (self.clean_field(p) for p in parts[:FIELD_COUNT])
        if original not in submitted:
            original = self.clean_field(LIST_MARKER.sub('', original))

        if not original or not folder or not new_name:
            return None

        return Decision(
            original_filename=original,
            folder_name=folder,
            new_base_name=new_name
        )

    @staticmethod
    def clean_field(value: str) -> str:
        """Trim whitespace and stray quotes from a field"""
        previous = None
        while previous != value:
            previous = value
            value = value.strip().strip(QUOTE_CHARS)
        return value
