"""
tests/test_html_text.py

Markup to markdown-like text conversion.

Coverage:
- headings, paragraphs, list items and links
- dropped script and style content
- double-escaped entities and whitespace collapsing
- icon-only absolute links keep their target
"""

from __future__ import annotations

from localseo.scraping.html_text import html_to_text


class TestHtmlToText:
    def test_converts_structure_to_markdown(self) -> None:
        html = """
        <html><body>
          <h1>Heizung Müller</h1>
          <p>Ihr Fachbetrieb für <b>Heizung</b> und Sanitär.</p>
          <ul><li>Wartung</li><li>Notdienst</li></ul>
          <a href="https://heizung-mueller.de/kontakt">Kontakt</a>
        </body></html>
        """

        text = html_to_text(html)

        assert "# Heizung Müller" in text
        assert "Ihr Fachbetrieb für Heizung und Sanitär." in text
        assert "- Wartung" in text
        assert "- Notdienst" in text
        assert "[Kontakt](https://heizung-mueller.de/kontakt)" in text

    def test_drops_scripts_and_styles(self) -> None:
        html = "<div>Visible<script>var tracking = 1;</script><style>.x{color:red}</style></div>"
        text = html_to_text(html)
        assert text == "Visible"

    def test_decodes_double_escaped_entities(self) -> None:
        text = html_to_text("<p>M&amp;uuml;nchen &amp;amp; Umgebung</p>")
        assert text == "München & Umgebung"

    def test_collapses_whitespace_and_blank_lines(self) -> None:
        text = html_to_text("<p>one</p>\n\n\n\n<p>two   three</p>")
        assert text == "one\n\ntwo three"

    def test_heading_levels(self) -> None:
        text = html_to_text("<h2>Leistungen</h2><h4>Details</h4>")
        assert "## Leistungen" in text
        assert "#### Details" in text

    def test_empty_input(self) -> None:
        assert html_to_text("") == ""
        assert html_to_text("   ") == ""

    def test_icon_only_links_keep_absolute_target(self) -> None:
        html = (
            '<footer><a href="https://www.instagram.com/heizungmueller"><i class="icon-ig"></i></a>'
            '<a href="/impressum"><img alt=""></a></footer>'
        )
        assert html_to_text(html) == "(https://www.instagram.com/heizungmueller)"
