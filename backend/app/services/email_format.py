"""
ダイジェストメール用の回答整形

回答は2種類:
- 標準回答: "1/ ..." 形式の番号付き行が2〜4行 (フレーズ/読み/ローマ字/訳)
- それ以外: Markdown (主に語彙表などのテーブル)
"""
import html
import re
from dataclasses import dataclass
from typing import Optional

import markdown

from app.core.logging import get_logger

logger = get_logger(__name__)

_NUMBERED_LINE = re.compile(r"^\s*\d+/\s*")
_NUMBERED_CONTENT = re.compile(r"^\s*\d+/\s*(.*)$")

_NATIVE_LINE_STYLE = "display:inline-block;font-size:14px;padding:8px 12px;background:#f0f0f0"

# 白黒メール向けのインラインスタイル (タグ → 置換後)
_EMAIL_STYLES = (
    ("<table>", '<table style="border-collapse: separate; border-spacing: 0 8px; width: 100%; margin: 16px 0;">'),
    ("<tr>", '<tr style="margin-bottom: 4px;">'),
    ("<th>", '<th style="padding: 8px 12px; line-height: 1.5; font-weight: bold; color: #000;">'),
    ("<td>", '<td style="padding: 8px 12px; line-height: 1.5; color: #000;">'),
    ("<h1>", '<h1 style="color: #000; font-size: 24px; margin: 16px 0 8px 0;">'),
    ("<h2>", '<h2 style="color: #000; font-size: 20px; margin: 16px 0 8px 0;">'),
    ("<h3>", '<h3 style="color: #000; font-size: 18px; margin: 16px 0 8px 0;">'),
    ("<h4>", '<h4 style="color: #000; font-size: 16px; margin: 16px 0 8px 0;">'),
    ("<h5>", '<h5 style="color: #000; font-size: 14px; margin: 16px 0 8px 0;">'),
    ("<h6>", '<h6 style="color: #000; font-size: 12px; margin: 16px 0 8px 0;">'),
    ("<p>", '<p style="color: #000; margin: 8px 0; line-height: 1.6;">'),
    ("<ul>", '<ul style="color: #000; margin: 8px 0; padding-left: 20px;">'),
    ("<ol>", '<ol style="color: #000; margin: 8px 0; padding-left: 20px;">'),
    ("<li>", '<li style="color: #000; margin: 4px 0;">'),
    ("<a href", '<a style="color: #000;" href'),
    ("<strong>", '<strong style="color: #000;">'),
    ("<b>", '<b style="color: #000;">'),
    ("<em>", '<em style="color: #000;">'),
    ("<i>", '<i style="color: #000;">'),
)


@dataclass
class EmailFormatOptions:
    language: str = "ja"
    is_phonetic_enabled: bool = True
    is_kana_enabled: bool = True


def _numbered_lines(content: str) -> list[str]:
    lines = [line for line in content.split("\n") if line.strip()]
    return [line for line in lines if _NUMBERED_LINE.match(line)]


def is_standard_response(content: str) -> bool:
    return len(_numbered_lines(content)) in (2, 3, 4)


def parse_standard_response(content: str) -> list[str]:
    """番号付き行から "N/" を取り除いた本文の一覧"""
    items = []
    for line in _numbered_lines(content):
        match = _NUMBERED_CONTENT.match(line)
        items.append(match.group(1).strip() if match else line.strip())
    return items


def get_phonetic_line_index(language: str, items_length: int) -> int:
    """発音 (ローマ字・ピンイン等) 行の位置。該当なしは -1"""
    if items_length < 3:
        return -1
    if language == "ja":
        return 2 if items_length == 4 else -1
    if language in ("zh", "ko"):
        return 1
    if language in ("ar", "ur"):
        return 1 if items_length == 3 else -1
    return -1


def format_standard_response_html(
    items: list[str],
    language: str = "ja",
    is_phonetic_enabled: bool = True,
) -> str:
    if not items:
        return ""

    phonetic_index = get_phonetic_line_index(language, len(items))
    count = len(items)
    escaped = [html.escape(item) for item in items]

    def hidden(index: int) -> bool:
        return phonetic_index == index and not is_phonetic_enabled

    first_size = "font-size:20px" if (language == "ja" and count == 4) else "font-size:18px"
    parts = [f'<div style="font-weight:500;margin-bottom:8px;{first_size}">{escaped[0]}</div>']

    if count == 2:
        parts.append(f'<div style="{_NATIVE_LINE_STYLE};margin-bottom:8px">{escaped[1]}</div>')
    elif count in (3, 4) and not hidden(1):
        parts.append(f'<div style="font-size:14px;opacity:0.8;margin-bottom:8px">{escaped[1]}</div>')

    if count == 3:
        parts.append(f'<div style="{_NATIVE_LINE_STYLE};margin-bottom:8px">{escaped[2]}</div>')
    elif count == 4:
        if not hidden(2):
            parts.append(
                f'<div style="font-size:14px;opacity:0.6;font-style:italic;margin-bottom:8px">{escaped[2]}</div>'
            )
        # 4行目 (訳) は常に表示
        parts.append(f'<div style="{_NATIVE_LINE_STYLE}">{escaped[3]}</div>')

    return "".join(parts)


def format_standard_response_text(items: list[str]) -> str:
    return "\n".join(items)


def _apply_email_styles(rendered: str) -> str:
    for tag, styled in _EMAIL_STYLES:
        rendered = rendered.replace(tag, styled)
    return rendered


def convert_markdown_to_html(content: str) -> str:
    """Markdown → インラインスタイル付きHTML。変換失敗時は元の文字列"""
    # 生のHTMLはそのまま通る。content は学習者自身の保存済み回答なので信頼する (テンプレートは | safe で埋め込む)
    try:
        rendered = markdown.markdown(
            content,
            extensions=["tables", "nl2br", "fenced_code"],
        )
    except Exception as e:
        logger.error(f"Markdown変換エラー: {e}")
        return content
    return _apply_email_styles(rendered)


def convert_markdown_to_text(content: str) -> str:
    # テキストメールではMarkdownをそのまま表示する
    return content


def format_response_html(content: str, options: Optional[EmailFormatOptions] = None) -> str:
    options = options or EmailFormatOptions()
    if is_standard_response(content):
        return format_standard_response_html(
            parse_standard_response(content),
            language=options.language or "ja",
            is_phonetic_enabled=options.is_phonetic_enabled,
        )
    return convert_markdown_to_html(content)


def format_response_text(content: str, options: Optional[EmailFormatOptions] = None) -> str:
    if is_standard_response(content):
        return format_standard_response_text(parse_standard_response(content))
    return convert_markdown_to_text(content)
