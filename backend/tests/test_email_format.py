import pytest

from app.services.email_format import (
    EmailFormatOptions,
    convert_markdown_to_html,
    convert_markdown_to_text,
    format_response_html,
    format_response_text,
    format_standard_response_html,
    get_phonetic_line_index,
    is_standard_response,
    parse_standard_response,
)

JAPANESE_FOUR_LINE = "1/ 猫が好きです\n2/ ねこがすきです\n3/ Neko ga suki desu\n4/ I like cats"


@pytest.mark.parametrize("content, expected", [
    ("1/ a\n2/ b", True),
    ("1/ a\n2/ b\n3/ c", True),
    (JAPANESE_FOUR_LINE, True),
    ("1/ only one line", False),
    ("1/ a\n2/ b\n3/ c\n4/ d\n5/ e", False),
    ("| word | meaning |\n|---|---|\n| 猫 | cat |", False),
])
def test_is_standard_response(content, expected):
    assert is_standard_response(content) is expected


def test_parse_strips_numbering_and_blank_lines():
    content = "  1/   こんにちは \n\n2/Hello\nnot numbered"
    assert parse_standard_response(content) == ["こんにちは", "Hello"]


@pytest.mark.parametrize("language, count, expected", [
    ("ja", 4, 2),
    ("ja", 3, -1),
    ("zh", 3, 1),
    ("ko", 4, 1),
    ("ar", 3, 1),
    ("ur", 4, -1),
    ("es", 4, -1),
    ("zh", 2, -1),
])
def test_phonetic_line_index(language, count, expected):
    assert get_phonetic_line_index(language, count) == expected


def test_japanese_four_line_html_hides_romaji_when_phonetic_disabled():
    items = parse_standard_response(JAPANESE_FOUR_LINE)

    shown = format_standard_response_html(items, "ja", is_phonetic_enabled=True)
    hidden = format_standard_response_html(items, "ja", is_phonetic_enabled=False)

    assert "font-size:20px" in shown
    assert "Neko ga suki desu" in shown
    assert "Neko ga suki desu" not in hidden
    assert "I like cats" in hidden


def test_two_line_html_boxes_translation():
    html = format_standard_response_html(["Hola", "Hello"], "es")
    assert "font-size:18px" in html
    assert "background:#f0f0f0" in html


def test_standard_html_escapes_item_text():
    html = format_standard_response_html(["<b>x</b>", "y"], "ja")
    assert "&lt;b&gt;x&lt;/b&gt;" in html


def test_markdown_table_gets_email_styles():
    content = "| word | meaning |\n|---|---|\n| 猫 | cat |"

    html = convert_markdown_to_html(content)

    assert '<table style="border-collapse: separate;' in html
    assert '<td style="padding: 8px 12px;' in html


def test_markdown_keeps_inline_html_from_saved_response():
    html = convert_markdown_to_html('Remember <span class="note">ね</span> here')

    assert '<span class="note">ね</span>' in html
    assert html.startswith('<p style="color: #000;')


def test_markdown_text_is_unchanged():
    assert convert_markdown_to_text("**bold**") == "**bold**"


def test_format_response_branches_on_content():
    options = EmailFormatOptions(language="ja", is_phonetic_enabled=False)

    assert "Neko" not in format_response_html(JAPANESE_FOUR_LINE, options)
    assert format_response_text(JAPANESE_FOUR_LINE) == "猫が好きです\nねこがすきです\nNeko ga suki desu\nI like cats"
    assert "<strong" in format_response_html("**bold** words")
    assert format_response_text("**bold** words") == "**bold** words"
