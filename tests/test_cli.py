# tests/test_cli.py

import json

import numpy as np
from PIL import Image

from lsbframe.cli import main


def write_png(path, h=64, w=64, fill=128) -> str:
    Image.fromarray(np.full((h, w, 3), fill, dtype=np.uint8)).save(str(path))
    return str(path)


def test_embed_and_extract_text(tmp_path, capsys):
    src = write_png(tmp_path / "cover.png")
    dst = str(tmp_path / "stego.png")

    assert main(["embed", "-i", src, "-o", dst, "-m", "Meet at 10"]) == 0
    capsys.readouterr()

    assert main(["extract", "-i", dst]) == 0
    assert capsys.readouterr().out.strip() == "Meet at 10"


def test_embed_file_and_extract_to_file(tmp_path):
    src    = write_png(tmp_path / "cover.png")
    dst    = str(tmp_path / "stego.png")
    secret = tmp_path / "secret.bin"
    secret.write_bytes(b"\x00\xff\x10")
    out    = tmp_path / "recovered.bin"

    assert main(["embed", "-i", src, "-o", dst, "-f", str(secret)]) == 0
    assert main(["extract", "-i", dst, "-o", str(out)]) == 0
    assert out.read_bytes() == b"\x00\xff\x10"


def test_extract_binary_without_out_fails(tmp_path, capsys):
    src = write_png(tmp_path / "cover.png")
    dst = str(tmp_path / "stego.png")
    secret = tmp_path / "secret.bin"
    secret.write_bytes(b"\xff\xfe")
    main(["embed", "-i", src, "-o", dst, "-f", str(secret)])

    assert main(["extract", "-i", dst]) == 3
    assert "not UTF-8" in capsys.readouterr().err


def test_embed_too_large(tmp_path, capsys):
    src = write_png(tmp_path / "cover.png", 8, 8)
    assert main(["embed", "-i", src, "-o", str(tmp_path / "s.png"), "-m", "A" * 500]) == 3
    assert "does not fit" in capsys.readouterr().err


def test_missing_input(tmp_path):
    assert main(["embed", "-i", str(tmp_path / "nope.png"),
                 "-o", str(tmp_path / "s.png"), "-m", "x"]) == 2


def test_extract_missing_input(tmp_path, capsys):
    assert main(["extract", "-i", str(tmp_path / "nope.png")]) == 2
    assert "Input not found" in capsys.readouterr().err


def test_capacity(tmp_path, capsys):
    src = write_png(tmp_path / "cover.png", 100, 100)
    assert main(["capacity", "-i", src]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["usable_bytes"] == 1246
    assert report["width"] == 100


def test_extract_not_encoded(tmp_path, capsys):
    src = write_png(tmp_path / "white.png", fill=255)
    assert main(["extract", "-i", src]) == 3
    assert "No hidden payload" in capsys.readouterr().err
