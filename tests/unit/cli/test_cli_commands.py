"""Tests for the chromaprofiles command-line interface."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from chromaprofiles.cli.main import build_arg_parser, main
from chromaprofiles.core.store.backends.sqlite import SQLiteLinkStore


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


@pytest.fixture(autouse=True)
def _isolate(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


def test_parser_requires_command() -> None:
    with pytest.raises(SystemExit):
        build_arg_parser().parse_args([])


def test_resolve_supported(capsys) -> None:
    assert _run(["resolve", "https://drive.google.com/open?id=ABC123"]) == 0

    out = capsys.readouterr().out
    assert "ABC123" in out
    assert "https://drive.google.com/uc?id=ABC123&export=download" in out


def test_resolve_unsupported(capsys) -> None:
    assert _run(["resolve", "https://example.com/a.zip"]) == 1
    assert "Unsupported" in capsys.readouterr().out


def test_parse_file(tmp_path: Path, lighting_xml: str, capsys) -> None:
    path = tmp_path / "Lighting.xml"
    path.write_text(lighting_xml, encoding="utf-8")

    assert _run(["parse", str(path)]) == 0

    out = capsys.readouterr().out
    assert "MyProfile" in out
    assert "#ff0010" in out
    assert "Usable" in out


def test_parse_missing_and_malformed(tmp_path: Path) -> None:
    broken = tmp_path / "broken.xml"
    broken.write_text("<LightingEffects>", encoding="utf-8")

    assert _run(["parse", str(tmp_path / "absent.xml")]) == 1
    assert _run(["parse", str(broken)]) == 1


def test_add_links_to_sqlite(tmp_path: Path, capsys) -> None:
    db = tmp_path / "links.db"
    urls = ["https://drive.google.com/open?id=A", "https://example.com/b"]

    assert _run(["add-links", "--post-id", "t3_x", *urls, "--db", str(db)]) == 0
    assert _run(["add-links", "--post-id", "t3_x", urls[0], "--db", str(db)]) == 0

    out = capsys.readouterr().out
    assert "Added 2 link(s)" in out
    assert "Added 0 link(s)" in out

    store = SQLiteLinkStore(db)
    store.initialize()
    try:
        assert [link.original_url for link in store.pending_links()] == urls
    finally:
        store.close()


def test_add_links_bad_config(tmp_path: Path) -> None:
    config = tmp_path / "config.yaml"
    config.write_text("store: [oops\n", encoding="utf-8")

    assert _run(["add-links", "--post-id", "p", "https://a", "--config", str(config)]) == 1


def test_analyze_with_no_pending_links(tmp_path: Path, capsys) -> None:
    (tmp_path / "config.yaml").write_text(
        "store:\n  backend: memory\nlogging:\n  level: WARNING\n", encoding="utf-8"
    )

    assert _run(["analyze"]) == 0

    out = capsys.readouterr().out
    assert "Link analysis" in out
    assert "GOOGLE_API_KEY" in out
