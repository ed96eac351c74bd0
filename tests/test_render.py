from contextpack.core import IncludedFile, estimate_tokens, render, render_text


def test_render_empty():
    assert render([]) == b""
    assert render_text([]) == ""
    assert estimate_tokens([]) == 0


def test_render_single_file_has_no_trailing_separator():
    assert render([IncludedFile("a.txt", b"hello")]) == b"File: a.txt\nhello"


def test_render_separates_files_with_one_blank_line():
    files = [IncludedFile("a.txt", b"hello"), IncludedFile("sub/c.txt", b"world")]
    assert render(files) == b"File: a.txt\nhello\n\nFile: sub/c.txt\nworld"


def test_render_keeps_header_for_empty_content():
    files = [IncludedFile("empty.txt", b""), IncludedFile("b.txt", b"b")]
    assert render(files) == b"File: empty.txt\n\n\nFile: b.txt\nb"


def test_render_copies_content_verbatim():
    raw = b"caf\xc3\xa9\r\n\tline\xff"
    assert render([IncludedFile("x", raw)]) == b"File: x\n" + raw
    assert render_text([IncludedFile("x", raw)]) == "File: x\ncafé\r\n\tline�"


def test_rendered_blocks_recover_original_content():
    files = [
        IncludedFile("a.py", b"import os\nprint(os.sep)"),
        IncludedFile("docs/readme.md", b"# Title\nbody"),
        IncludedFile("z.txt", b"last"),
    ]
    blocks = render(files).split(b"\n\n")
    recovered = []
    for block in blocks:
        header, _, content = block.partition(b"\n")
        recovered.append(IncludedFile(header[len(b"File: "):].decode(), content))
    assert recovered == files


def test_estimate_tokens_formula():
    files = [IncludedFile("a.txt", b"hello"), IncludedFile("sub/c.txt", b"world")]
    # (5 + 7 + 5) + (9 + 7 + 5) = 38
    assert estimate_tokens(files) == 9


def test_estimate_counts_path_bytes_not_characters():
    assert estimate_tokens([IncludedFile("é.txt", b"x")]) == (6 + 7 + 1) // 4


def test_estimate_is_monotonic_in_content_length():
    previous = -1
    for n in range(0, 64):
        current = estimate_tokens([IncludedFile("f.txt", b"x" * n)])
        assert current >= previous
        previous = current
