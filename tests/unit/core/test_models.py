"""Unit tests for core/models.py"""


def test_site_file_name_is_input_name(make_file):
    """name reports the input file name, not the output one."""
    file = make_file("index.tmpl.html")
    file.output = file.output.with_name("index.html")
    assert file.name == "index.tmpl.html"


def test_site_file_text_decodes_content(make_file):
    """text is the current content decoded as UTF-8."""
    assert make_file("a.txt", content="café\n".encode("utf-8")).text == "café\n"
