"""
Tests for prompt building and response parsing
"""

from pathlib import Path

import pytest

from agents.scanner import CandidateFile
from orchestrator.prompts import Decision, PromptBuilder, ResponseParser


class TestPromptBuilder:
    """Test cases for the classification request"""

    def setup_method(self):
        self.builder = PromptBuilder()
        self.files = [CandidateFile(Path("/inbox/b song.mp3")), CandidateFile(Path("/inbox/a song.mp3"))]

    def test_folders_sorted_one_per_line(self):
        """Allow-list is listed one folder per line in sorted order"""
        prompt = self.builder.build_request({"Rock", "Jazz", "Blues"}, self.files)

        assert "Valid folder names:\nBlues\nJazz\nRock\n" in prompt

    def test_files_listed_in_given_order(self):
        """Filenames are listed as given, one per line"""
        prompt = self.builder.build_request({"Rock"}, self.files)

        assert prompt.endswith("Files:\n- b song.mp3\n- a song.mp3")

    def test_plain_filenames_accepted(self):
        prompt = self.builder.build_request({"Rock"}, ["x.mp3"])

        assert "- x.mp3" in prompt

    def test_format_and_rules(self):
        """Template demands the arrow format and forbids guessing"""
        prompt = self.builder.build_request({"Rock"}, self.files)

        assert "original_filename → folder_name → new_filename" in prompt
        assert "Do not invent folders." in prompt
        assert "leave it out of your answer" in prompt
        assert "Artist - Song" in prompt

    def test_deterministic(self):
        """Same inputs give the same prompt"""
        first = self.builder.build_request({"Rock", "Jazz"}, self.files)
        second = self.builder.build_request({"Jazz", "Rock"}, self.files)

        assert first == second

    def test_folder_creation_variant(self):
        """With folder creation enabled the oracle may propose an artist folder"""
        prompt = PromptBuilder(allow_folder_creation=True).build_request({"Rock"}, self.files)

        assert "Do not invent folders." not in prompt
        assert "new folder named after the artist" in prompt


class TestResponseParser:
    """Conformance tests for the arrow-separated line grammar"""

    def setup_method(self):
        self.parser = ResponseParser()

    def test_single_line(self):
        decisions = self.parser.parse("Old Song.mp3 → Rock → Queen - Bohemian Rhapsody")

        assert decisions == {
            "Old Song.mp3": Decision("Old Song.mp3", "Rock", "Queen - Bohemian Rhapsody")
        }

    def test_whitespace_and_quotes_trimmed(self):
        """Fields lose surrounding whitespace and stray quotes"""
        decisions = self.parser.parse('  "Old Song.mp3"  →  \'Rock\' → “Queen - Bohemian Rhapsody”  ')

        assert decisions["Old Song.mp3"] == Decision("Old Song.mp3", "Rock", "Queen - Bohemian Rhapsody")

    def test_backticks_trimmed(self):
        decisions = self.parser.parse("`a.mp3` → `Jazz` → `Miles Davis - So What`")

        assert decisions["a.mp3"].folder_name == "Jazz"

    def test_echoed_list_marker_removed(self):
        """A '- ' copied from the file list is not part of the filename"""
        decisions = self.parser.parse("- a.mp3 → Rock → X - Y")

        assert list(decisions) == ["a.mp3"]

    @pytest.mark.parametrize("line", [
        "* a.mp3 → Rock → X - Y",
        "• a.mp3 → Rock → X - Y",
        "1. a.mp3 → Rock → X - Y",
        "12) a.mp3 → Rock → X - Y",
    ])
    def test_list_markers_removed(self, line):
        """Bullets and list numbers are not part of the filename"""
        assert list(self.parser.parse(line)) == ["a.mp3"]

    def test_numbered_filename_kept_when_submitted(self):
        """A file really named '01. Song.mp3' keeps its number"""
        decisions = self.parser.parse("01. Song.mp3 → Rock → X - Y", submitted=["01. Song.mp3"])

        assert list(decisions) == ["01. Song.mp3"]

    def test_list_number_removed_when_not_a_filename(self):
        decisions = self.parser.parse("1. a.mp3 → Rock → X - Y", submitted=["a.mp3"])

        assert list(decisions) == ["a.mp3"]

    def test_apostrophe_inside_field_kept(self):
        decisions = self.parser.parse("gnr.mp3 → Rock → Guns N' Roses - Patience")

        assert decisions["gnr.mp3"].new_base_name == "Guns N' Roses - Patience"

    @pytest.mark.parametrize("line", [
        "Here are my suggestions:",
        "a.mp3 -> Rock -> X - Y",
        "a.mp3 → Rock",
        "a.mp3 → Rock → X → extra",
        "→ Rock → X",
        "a.mp3 →  → X",
        "a.mp3 → Rock → ''",
        "→→",
        "",
    ])
    def test_malformed_lines_dropped(self, line):
        """Malformed lines produce no entry and never raise"""
        assert self.parser.parse(line) == {}

    def test_malformed_lines_do_not_affect_good_ones(self):
        response = "\n".join([
            "Sure! Here you go:",
            "a.mp3 → Rock → A - One",
            "b.mp3 → Jazz",
            "c.mp3 → Jazz → C - Three",
            "Let me know if you need anything else.",
        ])

        assert sorted(self.parser.parse(response)) == ["a.mp3", "c.mp3"]

    def test_last_decision_wins(self):
        """Repeated filenames keep only the last decision"""
        response = "a.mp3 → Rock → First\na.mp3 → Jazz → Second"

        decisions = self.parser.parse(response)

        assert decisions == {"a.mp3": Decision("a.mp3", "Jazz", "Second")}

    def test_windows_line_endings(self):
        decisions = self.parser.parse("a.mp3 → Rock → A\r\nb.mp3 → Jazz → B\r\n")

        assert decisions["a.mp3"].new_base_name == "A"
        assert decisions["b.mp3"].new_base_name == "B"

    @pytest.mark.parametrize("response", [None, "", "   \n\n"])
    def test_empty_response(self, response):
        assert self.parser.parse(response) == {}


class TestLenientResponseParser:
    """Lenient mode: three or more fields, first three used"""

    def setup_method(self):
        self.parser = ResponseParser(strict=False)

    def test_extra_fields_ignored(self):
        decisions = self.parser.parse("a.mp3 → Rock → A - One → because it rocks")

        assert decisions["a.mp3"] == Decision("a.mp3", "Rock", "A - One")

    def test_exact_three_fields_still_parsed(self):
        assert "a.mp3" in self.parser.parse("a.mp3 → Rock → A - One")

    def test_too_few_fields_still_dropped(self):
        assert self.parser.parse("a.mp3 → Rock") == {}
