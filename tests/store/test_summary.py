"""Tests for markdown plain-text extraction and summaries."""

from personal_diary.store.summary import (
    ELLIPSIS,
    SUMMARY_LENGTH,
    derive_summary,
    markdown_to_text,
    word_count,
)


def test_plain_text_unchanged():
    assert markdown_to_text("Just a sentence.") == "Just a sentence."


def test_headings_and_emphasis():
    text = markdown_to_text("# Title\n\nSome **bold** and *italic* and _under_ and ~~gone~~.")
    assert text == "Title Some bold and italic and under and gone."


def test_links_and_images():
    text = markdown_to_text("See [the docs](https://x.io) ![a cat](cat.png)")
    assert text == "See the docs a cat"


def test_lists_and_quotes():
    text = markdown_to_text("> quoted\n\n- one\n- two\n1. first")
    assert text == "quoted one two first"


def test_code():
    text = markdown_to_text("Run `ls`\n```python\nprint(1)\n```")
    assert text == "Run ls print(1)"


def test_html_and_rules():
    assert markdown_to_text("<b>hi</b>\n\n---\n\nthere") == "hi there"


def test_snake_case_kept():
    assert markdown_to_text("my_var_name") == "my_var_name"


def test_summary_short_content():
    assert derive_summary("Short **note**") == "Short note"


def test_summary_empty():
    assert derive_summary("") == ""


def test_summary_exact_length_not_truncated():
    content = "x" * SUMMARY_LENGTH
    assert derive_summary(content) == content


def test_summary_truncated_with_ellipsis():
    content = "y" * (SUMMARY_LENGTH + 1)
    summary = derive_summary(content)
    assert summary == "y" * SUMMARY_LENGTH + ELLIPSIS


def test_summary_is_prefix_of_plain_text():
    content = "## Day\n\n" + "Walked to the *park* and back. " * 20
    summary = derive_summary(content)
    plain = markdown_to_text(content)
    assert summary.endswith(ELLIPSIS)
    assert plain.startswith(summary[: -len(ELLIPSIS)])


def test_word_count():
    assert word_count("# Hello\n\n**big** world") == 3
    assert word_count("") == 0


def test_angle_brackets_in_prose_kept():
    assert derive_summary("a < b and c > d") == "a < b and c > d"


def test_literal_asterisks_kept():
    assert derive_summary("5 * 3 * 2 = 30") == "5 * 3 * 2 = 30"
    assert word_count("5 * 3 * 2 = 30") == 7


def test_html_entities_decoded():
    assert markdown_to_text("Fish &amp; chips") == "Fish & chips"
