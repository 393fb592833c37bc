"""Tests for resumie/latex/style.py."""

import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from resumie.core.constants import FONT_SIZE_MARKER, STYLE_BLOCK_END, STYLE_BLOCK_START
from resumie.latex.style import (
    apply_style_to_latex,
    build_font_size_command,
    build_style_block,
    has_package,
    parse_style_from_latex,
    strip_style_injection,
    validate_styled_latex,
)
from resumie.models import DEFAULT_STYLE_CONFIG, StyleConfig


BASE_DOC = "\n".join([
    r"\documentclass[10pt]{article}",
    r"\usepackage{titlesec}",
    r"\begin{document}",
    r"Hello",
    r"\end{document}",
])


class TestParseStyle:

    def test_documentclass_and_geometry(self):
        latex = (
            r"\documentclass[11pt]{article}"
            r"\usepackage[letterpaper,top=20mm,bottom=20mm,left=20mm,right=20mm]{geometry}"
            r"\begin{document}...\end{document}"
        )
        style = parse_style_from_latex(latex)
        assert style.page_size == "letter"
        assert style.base_font_size_pt == 11
        assert style.margin_top_mm == 20
        assert style.margin_bottom_mm == 20
        assert style.margin_left_mm == 20
        assert style.margin_right_mm == 20

    def test_nothing_found_keeps_defaults(self):
        assert parse_style_from_latex("plain text") == DEFAULT_STYLE_CONFIG

    def test_geometry_command_uniform_inch_margin(self):
        style = parse_style_from_latex(r"\geometry{margin=1in}")
        assert style.margin_top_mm == 25.4
        assert style.margin_right_mm == 25.4

    def test_centimetre_margins_and_per_side_override(self):
        style = parse_style_from_latex(r"\usepackage[a4paper,margin=2cm,top=1.5cm]{geometry}")
        assert style.page_size == "a4"
        assert style.margin_top_mm == 15
        assert style.margin_left_mm == 20

    def test_margins_clamped(self):
        style = parse_style_from_latex(r"\usepackage[margin=2mm,left=80mm]{geometry}")
        assert style.margin_top_mm == 5
        assert style.margin_left_mm == 40

    def test_documentclass_font_size_clamped_to_decode_range(self):
        assert parse_style_from_latex(r"\documentclass[14pt]{extarticle}").base_font_size_pt == 12

    def test_marked_font_size_wins_over_documentclass(self):
        latex = "\\documentclass[10pt]{article}\n\\fontsize{11.5pt}{14pt}\\selectfont " + FONT_SIZE_MARKER
        assert parse_style_from_latex(latex).base_font_size_pt == 11.5

    def test_line_height_and_section_spacing(self):
        latex = "\\setstretch{1.8}\n\\titlespacing*{\\section}{0pt}{12pt}{6pt}"
        style = parse_style_from_latex(latex)
        assert style.line_height == 1.5
        assert style.section_spacing_pt == 12

    def test_font_family_detection(self):
        assert parse_style_from_latex(r"\usepackage{mathptmx}").font_family == "times"
        assert parse_style_from_latex(r"\usepackage[scaled]{helvet}").font_family == "helvetica"
        assert parse_style_from_latex(r"\usepackage{newpxtext}").font_family == "palatino"
        assert parse_style_from_latex(r"\usepackage{XCharter}").font_family == "charter"
        assert parse_style_from_latex(r"\usepackage{lmodern}").font_family == "lmodern"
        assert parse_style_from_latex(r"\usepackage{hyperref}").font_family == "default"

    def test_has_package_matches_inside_list(self):
        assert has_package(r"\usepackage[T1]{fontenc,titlesec}", "titlesec")
        assert not has_package(r"\usepackage{titlesecx}", "titlesec")


class TestApplyStyle:

    def test_block_inserted_after_documentclass(self):
        result = apply_style_to_latex(BASE_DOC, DEFAULT_STYLE_CONFIG)
        lines = result.split("\n")
        assert lines[0].startswith(r"\documentclass")
        assert lines[1] == STYLE_BLOCK_START
        assert STYLE_BLOCK_END in result

    def test_font_size_inserted_after_begin_document(self):
        style = StyleConfig(base_font_size_pt=11)
        result = apply_style_to_latex(BASE_DOC, style)
        lines = result.split("\n")
        index = lines.index(r"\begin{document}")
        assert lines[index + 1] == r"\fontsize{11pt}{13pt}\selectfont " + FONT_SIZE_MARKER

    def test_idempotent(self):
        style = StyleConfig(margin_top_mm=22, font_family="times")
        once = apply_style_to_latex(BASE_DOC, style)
        twice = apply_style_to_latex(once, style)
        assert once == twice
        assert twice.count(STYLE_BLOCK_START) == 1
        assert twice.count(FONT_SIZE_MARKER) == 1

    def test_strip_restores_source(self):
        result = apply_style_to_latex(BASE_DOC, DEFAULT_STYLE_CONFIG)
        assert strip_style_injection(result) == BASE_DOC

    def test_round_trip(self):
        style = StyleConfig(
            page_size="a4",
            margin_top_mm=12.5,
            margin_bottom_mm=20,
            margin_left_mm=10,
            margin_right_mm=30,
            base_font_size_pt=11,
            line_height=1.25,
            section_spacing_pt=10,
            font_family="palatino",
        )
        assert parse_style_from_latex(apply_style_to_latex(BASE_DOC, style)) == style

    def test_font_size_above_decode_range_clamps_on_read(self):
        result = apply_style_to_latex(BASE_DOC, StyleConfig(base_font_size_pt=13))
        assert parse_style_from_latex(result).base_font_size_pt == 12

    def test_conflicting_packages_removed(self):
        latex = "\n".join([
            r"\documentclass{article}",
            r"\usepackage{geometry}",
            r"\usepackage{times}",
            r"\usepackage{fontspec}",
            r"\setmainfont{Arial}",
            r"\renewcommand{\familydefault}{\sfdefault}",
            r"\usepackage{setspace}",
            r"\begin{document}",
            r"\end{document}",
        ])
        result = apply_style_to_latex(latex, DEFAULT_STYLE_CONFIG)
        assert result.count("{geometry}") == 1
        assert result.count("{setspace}") == 1
        assert "{times}" not in result
        assert "fontspec" not in result
        assert "setmainfont" not in result
        assert "familydefault" not in result

    def test_single_line_document(self):
        latex = (
            r"\documentclass[11pt]{article}"
            r"\usepackage[letterpaper,top=20mm,bottom=20mm,left=20mm,right=20mm]{geometry}"
            r"\begin{document}Hello\end{document}"
        )
        style = StyleConfig(page_size="a4", margin_top_mm=30, base_font_size_pt=9)
        result = apply_style_to_latex(latex, style)

        assert result.index(STYLE_BLOCK_START) < result.index(r"\begin{document}")
        assert result.index(r"\begin{document}") < result.index(FONT_SIZE_MARKER) < result.index("Hello")
        assert result.count("{geometry}") == 1
        assert validate_styled_latex(result).valid
        assert apply_style_to_latex(result, style) == result
        assert parse_style_from_latex(result) == style

    def test_conflicting_package_sharing_a_line(self):
        latex = "\n".join([
            r"\documentclass{article}",
            r"\usepackage{geometry}\usepackage{amsmath}",
            r"\usepackage{geometry} \usepackage{setspace}",
            r"\begin{document}",
            r"\end{document}",
        ])
        result = apply_style_to_latex(latex, DEFAULT_STYLE_CONFIG)
        assert result.count("{geometry}") == 1
        assert result.count("{setspace}") == 1
        assert strip_style_injection(result) == "\n".join([
            r"\documentclass{article}",
            r"\usepackage{amsmath}",
            r"\begin{document}",
            r"\end{document}",
        ])

    def test_missing_anchors_skip_insertion(self):
        result = apply_style_to_latex("no preamble here", DEFAULT_STYLE_CONFIG)
        assert result == "no preamble here"


class TestStyleBlock:

    def test_titlespacing_only_with_titlesec(self):
        style = StyleConfig(section_spacing_pt=5)
        with_titlesec = build_style_block(style, r"\usepackage{titlesec}")
        assert r"\titlespacing*{\section}{0pt}{5pt}{3pt}" in with_titlesec
        assert not any("titlespacing" in line for line in build_style_block(style, ""))

    def test_geometry_and_stretch_lines(self):
        lines = build_style_block(StyleConfig(margin_top_mm=12.5, line_height=1.3), "")
        assert r"\usepackage[letterpaper,top=12.5mm,bottom=15mm,left=18mm,right=18mm]{geometry}" in lines
        assert r"\setstretch{1.30}" in lines

    def test_helvetica_switches_family_default(self):
        lines = build_style_block(StyleConfig(font_family="helvetica"), "")
        assert lines[:2] == [r"\usepackage[scaled]{helvet}", r"\renewcommand{\familydefault}{\sfdefault}"]

    def test_font_size_command_rounds_baseline_half_up(self):
        assert build_font_size_command(StyleConfig(base_font_size_pt=12.5)).startswith(
            r"\fontsize{12.5pt}{15pt}\selectfont"
        )


class TestValidateStyledLatex:

    def test_valid_document(self):
        result = validate_styled_latex(apply_style_to_latex(BASE_DOC, DEFAULT_STYLE_CONFIG))
        assert result.valid
        assert result.error is None

    def test_missing_documentclass(self):
        result = validate_styled_latex(r"\begin{document}\end{document}")
        assert not result.valid
        assert "documentclass" in result.error

    def test_missing_end_document(self):
        result = validate_styled_latex("\\documentclass{article}\n\\begin{document}")
        assert result.error == "Missing \\end{document}"

    def test_unbalanced_markers(self):
        latex = "\\documentclass{article}\n" + STYLE_BLOCK_START + "\n\\begin{document}\\end{document}"
        assert validate_styled_latex(latex).valid is False
