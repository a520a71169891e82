"""Root test configuration: shared site-tree fixtures"""

from pathlib import Path

import pytest


INDEX_TMPL = """\
+++
title: Home
+++
<h1>{{ file.metadata.title }}</h1>
"""


def _write_tree(root: Path, files: dict[str, str]) -> Path:
    """Create files (relative path -> text) under root and return root."""
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
    return root


@pytest.fixture(name="write_tree")
def write_tree_fixture():
    return _write_tree


@pytest.fixture(name="site_dir")
def site_dir_fixture(tmp_path):
    """The reference input tree: a template with metadata, a stylesheet, an excluded draft."""
    return _write_tree(tmp_path / "site", {
        "index.tmpl.html": INDEX_TMPL,
        "style.css": "body { margin: 0; }\n",
        "_draft/notes.txt": "not published\n",
    })
