"""Tests for resumie/text/plain_parser.py."""

import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from resumie.core.constants import EMPTY_RESUME_PLACEHOLDER, FALLBACK_CANDIDATE_NAME
from resumie.models import BulletsItem, ParagraphItem
from resumie.text.plain_parser import (
    derive_render_payload_from_resume_text,
    detect_heading,
    parse_resume_plain_text,
    parse_section_items,
    split_contacts,
)


class TestDetectHeading:

    def test_alias_is_case_and_punctuation_insensitive(self):
        assert detect_heading("Work Experience") == "Experience"
        assert detect_heading("  TECHNICAL-SKILLS ") == "Skills"
        assert detect_heading("Professional Summary") == "Summary"

    def test_all_caps_rule_title_cases(self):
        assert detect_heading("OPEN SOURCE WORK") == "Open Source Work"

    def test_all_caps_too_many_words(self):
        assert detect_heading("THIS IS FAR TOO LONG A LINE") is None

    def test_sentence_is_not_heading(self):
        assert detect_heading("Led a team of five engineers") is None

    def test_digits_only_line_is_not_heading(self):
        assert detect_heading("2020") is None

    def test_bullet_line_is_never_heading(self):
        assert detect_heading("- SKILLS") is None

    def test_colon_rule_only_when_allowed(self):
        assert detect_heading("Tools I Use:") is None
        assert detect_heading("Tools I Use:", allow_colon=True) == "Tools I Use"


class TestHelpers:

    def test_split_contacts(self):
        assert split_contacts("a@b.com | 555-123-4567 • site.dev") == ["a@b.com", "555-123-4567", "site.dev"]

    def test_split_contacts_commas_and_double_space(self):
        assert split_contacts("a@b.com,  Boston") == ["a@b.com", "Boston"]

    def test_paragraph_lines_joined(self):
        items = parse_section_items(["Built things", "at scale.", "", "Second para"])
        assert items == [ParagraphItem(text="Built things at scale."), ParagraphItem(text="Second para")]

    def test_buffered_line_becomes_bullet_header(self):
        items = parse_section_items(["Acme Corp | Engineer | 2020 | NYC", "- Did x", "* Did y"])
        assert items == [BulletsItem(
            title="Acme Corp", subtitle="Engineer", meta="2020", bullets=["Did x", "Did y"],
        )]

    def test_numbered_bullets(self):
        items = parse_section_items(["1. First", "2) Second"])
        assert items[0].bullets == ["First", "Second"]

    def test_text_after_bullets_flushes_them(self):
        items = parse_section_items(["- one", "Trailing note"])
        assert isinstance(items[0], BulletsItem)
        assert items[1] == ParagraphItem(text="Trailing note")

    def test_indented_continuation_only_when_enabled(self):
        lines = ["- Built x", "  and kept it running"]
        assert parse_section_items(lines, join_indented_continuations=True)[0].bullets == [
            "Built x and kept it running"
        ]
        loose = parse_section_items(lines)
        assert loose[0].bullets == ["Built x"]
        assert loose[1] == ParagraphItem(text="and kept it running")


class TestDeriveRenderPayload:
    """Editor variant."""

    def test_caps_name_contact_and_aliased_section(self):
        payload = derive_render_payload_from_resume_text(
            "JOHN SMITH\njohn@x.com\nEXPERIENCE\n- Did a thing\n- Did another thing"
        )
        assert payload.title.name == "JOHN SMITH"
        assert payload.title.contacts == ["john@x.com"]
        assert len(payload.sections) == 1
        section = payload.sections[0]
        assert section.heading == "Experience"
        assert section.id == "section-0-experience"
        assert section.items == [BulletsItem(bullets=["Did a thing", "Did another thing"])]

    def test_empty_input_placeholder(self):
        payload = derive_render_payload_from_resume_text("")
        assert payload.title.name == FALLBACK_CANDIDATE_NAME
        assert len(payload.sections) == 1
        assert payload.sections[0].heading == "Overview"
        assert payload.sections[0].items == [ParagraphItem(text=EMPTY_RESUME_PLACEHOLDER)]

    def test_whitespace_only_is_empty(self):
        assert derive_render_payload_from_resume_text("  \n\t\n").sections[0].id == "section-empty"

    def test_subtitle_detected(self):
        payload = derive_render_payload_from_resume_text("Jane Doe\nStaff Engineer\njane@x.com\nSKILLS\nPython")
        assert payload.title.subtitle == "Staff Engineer"
        assert payload.title.contacts == ["jane@x.com"]
        assert [s.heading for s in payload.sections] == ["Skills"]

    def test_jd_subtitle_when_none_found(self):
        payload = derive_render_payload_from_resume_text(
            "Jane Doe\njane@x.com\nSKILLS\nPython",
            jd_text="Senior Backend Engineer\nWe build things.",
        )
        assert payload.title.subtitle == "Targeting: Senior Backend Engineer"

    def test_contacts_deduped_and_capped(self):
        payload = derive_render_payload_from_resume_text(
            "Jane Doe\na@b.com | a@b.com | 555-123-4567 | x.dev | y.dev | z.dev\nSKILLS\nPython"
        )
        assert payload.title.contacts == ["a@b.com", "555-123-4567", "x.dev", "y.dev"]

    def test_leading_content_goes_under_experience(self):
        payload = derive_render_payload_from_resume_text("Shipped 3 products in 2023.\nEDUCATION\nMIT")
        assert [s.heading for s in payload.sections] == ["Experience", "Education"]
        assert payload.title.name == FALLBACK_CANDIDATE_NAME

    def test_section_order_preserved(self):
        text = "Jane Doe\nSUMMARY\nHello\nSKILLS\nPython\nEDUCATION\nMIT\nPROJECTS\n- Tool"
        headings = [s.heading for s in derive_render_payload_from_resume_text(text).sections]
        assert headings == ["Summary", "Skills", "Education", "Projects"]

    def test_name_only_falls_back_to_overview(self):
        payload = derive_render_payload_from_resume_text("Jane Doe")
        assert payload.sections[0].id == "section-overview"
        assert payload.sections[0].items == [ParagraphItem(text="Jane Doe")]

    def test_long_line_after_title_stays_in_body(self):
        long_line = "Delivered " + "x" * 90
        payload = derive_render_payload_from_resume_text(
            f"Jane Doe\njane@x.com\nShort tagline\n{long_line}\nEXPERIENCE\n- did a thing"
        )
        assert payload.title.subtitle == "Short tagline"
        assert payload.title.contacts == ["jane@x.com"]
        assert payload.sections[0].items == [ParagraphItem(text=long_line)]
        assert payload.sections[1].items == [BulletsItem(bullets=["did a thing"])]


class TestParseResumePlainText:
    """Stricter standalone variant."""

    def test_colon_heading_and_continuation(self):
        payload = parse_resume_plain_text(
            "Jane Doe\nTools I Use:\nPython, Go\nExperience\n- Built x\n  and kept it running"
        )
        assert [s.heading for s in payload.sections] == ["Tools I Use", "Experience"]
        assert [s.id for s in payload.sections] == ["section-0", "section-1"]
        assert payload.sections[1].items[0].bullets == ["Built x and kept it running"]

    def test_leading_content_goes_under_summary(self):
        payload = parse_resume_plain_text("Shipped 3 products in 2023.\nEXPERIENCE\n- x")
        assert payload.sections[0].heading == "Summary"
        assert payload.title.name == "Resume"

    def test_empty_input(self):
        payload = parse_resume_plain_text("")
        assert payload.sections[0].heading == "Summary"
        assert payload.sections[0].items[0].text == EMPTY_RESUME_PLACEHOLDER
