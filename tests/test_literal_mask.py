from shakecheck.literal_mask import is_code_at, line_of, mask_literals_and_comments


def test_line_comment_blanked_newline_kept():
    text = "a // b\nc"
    masked = mask_literals_and_comments(text)
    assert masked == "a     \nc"


def test_block_comment_keeps_line_structure():
    text = "a/* x\ny */b"
    masked = mask_literals_and_comments(text)
    assert masked == "a    \n    b"
    assert len(masked) == len(text)


def test_string_escape_is_one_unit():
    text = "'a\\'b' + c"
    masked = mask_literals_and_comments(text)
    assert masked == " " * 6 + " + c"


def test_unterminated_string_stops_at_newline():
    text = "'abc\nexport const x = 1"
    masked = mask_literals_and_comments(text)
    assert masked == "    \nexport const x = 1"


def test_template_hole_contents_are_code():
    text = "`a${b}c`"
    assert mask_literals_and_comments(text) == "    b   "


def test_nested_literals_inside_hole_are_masked():
    text = "`${'x' + `y${z}`}`;q"
    masked = mask_literals_and_comments(text)
    assert len(masked) == len(text)
    assert masked.endswith(";q")
    assert "x" not in masked
    assert "y" not in masked
    assert "z" in masked


def test_braces_inside_hole_do_not_close_it():
    text = "`${ {a: 1}.a }` + d"
    masked = mask_literals_and_comments(text)
    assert "{a: 1}.a" in masked
    assert masked.endswith(" + d")


def test_multiline_template_masked_across_lines():
    text = "const s = `\nexport const hidden = 1\n`;\nexport const shown = 2"
    masked = mask_literals_and_comments(text)
    assert "hidden" not in masked
    assert "shown" in masked
    assert masked.count("\n") == text.count("\n")


def test_comment_markers_inside_string_are_text():
    text = "const u = 'http://x'; export const y = 1"
    masked = mask_literals_and_comments(text)
    assert "export const y = 1" in masked


def test_is_code_at_and_line_of():
    text = "// export a\nexport b"
    masked = mask_literals_and_comments(text)
    assert not is_code_at(text, masked, text.index("export"))
    second = text.index("export", 5)
    assert is_code_at(text, masked, second)
    assert line_of(text, second) == 2
    assert not is_code_at(text, masked, len(text) + 3)
