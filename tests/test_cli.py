from __future__ import annotations

from iconify.cli import main
from iconify.core.ico import decode_ico


def test_cli_converts_file(make_image, tmp_path, capsys) -> None:
    out = tmp_path / "out"
    code = main([str(make_image()), "-o", str(out), "-f", "both", "-s", "16,32"])

    assert code == 0
    assert (out / "favicon.ico").exists()
    assert len(list(out.glob("icon-*.png"))) == 7
    assert "Conversion completed successfully!" in capsys.readouterr().out


def test_cli_emoji_code_point(tmp_path) -> None:
    out = tmp_path / "emoji"
    code = main(["U+2B50", "--emoji", "-o", str(out), "-f", "ico", "-s", "32"])

    assert code == 0
    assert [(e.width, e.height) for e in decode_ico((out / "favicon.ico").read_bytes())] == [(32, 32)]


def test_cli_missing_file(tmp_path, capsys) -> None:
    code = main([str(tmp_path / "missing.png")])
    assert code == 1
    assert "Input file not found" in capsys.readouterr().err


def test_cli_bad_format(make_image, capsys) -> None:
    assert main([str(make_image()), "-f", "gif"]) == 1
    assert 'Invalid format "gif"' in capsys.readouterr().err


def test_cli_bad_sizes(make_image, capsys) -> None:
    assert main([str(make_image()), "-s", "16,abc"]) == 1
    assert "Invalid ICO sizes" in capsys.readouterr().err


def test_cli_conversion_failure_exits_nonzero(tmp_path, capsys) -> None:
    bogus = tmp_path / "bogus.png"
    bogus.write_text("hello", encoding="utf-8")
    assert main([str(bogus), "-o", str(tmp_path / "out")]) == 1
    assert "Error:" in capsys.readouterr().err
