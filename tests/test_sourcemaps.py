# tests/test_sourcemaps.py

from __future__ import annotations

from pathlib import Path

from themepipe.sourcemaps import Chunk, concat, identity_map, inline_comment, split_inline, url_comment


def test_concat_offsets_sections_by_preceding_lines() -> None:
    first = {"version": 3, "sources": ["a.js"], "mappings": "AAAA"}
    third = {"version": 3, "sources": ["c.js"], "mappings": "AAAA"}

    text, index = concat(
        [Chunk("a();\nb();\n\n", first), Chunk("   \n"), Chunk("unmapped();"), Chunk("c();", third)],
        "out.js",
    )

    assert text == "a();\nb();\nunmapped();\nc();"
    assert index["version"] == 3 and index["file"] == "out.js"
    assert [s["offset"] for s in index["sections"]] == [
        {"line": 0, "column": 0},
        {"line": 3, "column": 0},
    ]
    assert index["sections"][1]["map"] is third


def test_identity_map_walks_source_lines(tmp_path: Path) -> None:
    src = tmp_path / "src" / "js" / "app.js"
    smap = identity_map(src, "a();\nb();\nc();\n", tmp_path / "dist" / "js")

    assert smap["sources"] == ["../../src/js/app.js"]
    assert smap["mappings"] == "AAAA;AACA;AACA"
    assert smap["sourcesContent"] == ["a();\nb();\nc();\n"]


def test_inline_map_is_split_back_out() -> None:
    smap = {"version": 3, "sources": ["main.scss"], "mappings": "AAAA"}

    css, found = split_inline(".a{color:red}\n" + inline_comment(smap) + "\n")

    assert css == ".a{color:red}"
    assert found == smap
    assert split_inline(".a{color:red}") == (".a{color:red}", None)


def test_url_comment_syntax() -> None:
    assert url_comment("main.min.css.map", css=True) == "/*# sourceMappingURL=main.min.css.map */"
    assert url_comment("main.min.js.map", css=False) == "//# sourceMappingURL=main.min.js.map"
