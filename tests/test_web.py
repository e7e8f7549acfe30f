# tests/test_web.py

import base64
import io
import struct
import zlib

import numpy as np
from PIL import Image
from fastapi.testclient import TestClient

from web.app import app
from web.config import settings


client = TestClient(app)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def png_bytes(h=100, w=100, fill=128) -> bytes:
    out = io.BytesIO()
    Image.fromarray(np.full((h, w, 3), fill, dtype=np.uint8)).save(out, format="PNG")
    return out.getvalue()


def upload(data: bytes, name="cover.png", media="image/png") -> dict:
    return {"file": (name, data, media)}


def oversized_png(width=50000, height=50000) -> bytes:
    data = bytearray(png_bytes(4, 4))
    data[16:24] = struct.pack(">II", width, height)
    data[29:33] = struct.pack(">I", zlib.crc32(bytes(data[12:29])))
    return bytes(data)


# ---------------------------------------------------------------------------
# Group 1: Health and capacity
# ---------------------------------------------------------------------------

def test_health():
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_capacity_endpoint():
    resp = client.post("/api/capacity", files=upload(png_bytes()))
    assert resp.status_code == 200
    body = resp.json()
    assert body["format"] == "PNG"
    assert body["width"] == 100
    assert body["capacity"]["usable_bytes"] == 1246


def test_capacity_rejects_garbage():
    resp = client.post("/api/capacity", files=upload(b"garbage", "x.png"))
    assert resp.status_code == 400


def test_capacity_rejects_oversized_header():
    resp = client.post("/api/capacity", files=upload(oversized_png(), "huge.png"))
    assert resp.status_code == 400
    assert "Could not decode image" in resp.json()["detail"]


# ---------------------------------------------------------------------------
# Group 2: Embed → decode
# ---------------------------------------------------------------------------

def test_embed_then_decode_text():
    resp = client.post(
        "/api/embed",
        files = upload(png_bytes()),
        data  = {"message": "HELLO"},
    )
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "image/png"
    assert "cover_stego.png" in resp.headers["content-disposition"]
    assert resp.headers["x-payload-bits"] == "72"

    decoded = client.post("/api/decode", files=upload(resp.content, "cover_stego.png"))
    body    = decoded.json()
    assert body["success"]
    assert body["message"] == "HELLO"
    assert body["size"] == 5


def test_embed_then_decode_empty_message():
    """An empty message field is a zero-length payload, not a missing one."""
    resp = client.post(
        "/api/embed",
        files = upload(png_bytes()),
        data  = {"message": ""},
    )
    assert resp.status_code == 200
    assert resp.headers["x-payload-bits"] == "32"

    body = client.post("/api/decode", files=upload(resp.content)).json()
    assert body["success"]
    assert body["message"] == ""
    assert body["size"] == 0


def test_embed_payload_file_then_decode():
    secret = b"\x00\xffbinary\xfe"
    resp = client.post(
        "/api/embed",
        files = {
            "file"    : ("cover.png", png_bytes(), "image/png"),
            "payload" : ("secret.bin", secret, "application/octet-stream"),
        },
    )
    assert resp.status_code == 200

    body = client.post("/api/decode", files=upload(resp.content)).json()
    assert body["success"]
    assert base64.b64decode(body["payload_base64"]) == secret
    assert body["message"] is None


def test_embed_tiff_output():
    resp = client.post(
        "/api/embed",
        files = upload(png_bytes()),
        data  = {"message": "tiff please", "output_format": "tiff"},
    )
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "image/tiff"


# ---------------------------------------------------------------------------
# Group 3: Errors
# ---------------------------------------------------------------------------

def test_embed_too_large_is_413():
    resp = client.post(
        "/api/embed",
        files = upload(png_bytes(8, 8)),
        data  = {"message": "A" * 100},
    )
    assert resp.status_code == 413
    detail = resp.json()["detail"]
    assert detail["capacity_bytes"] == 4
    assert detail["requested_bytes"] == 100


def test_embed_requires_exactly_one_payload():
    resp = client.post("/api/embed", files=upload(png_bytes()))
    assert resp.status_code == 400

    resp = client.post(
        "/api/embed",
        files = {
            "file"    : ("cover.png", png_bytes(), "image/png"),
            "payload" : ("secret.bin", b"x", "application/octet-stream"),
        },
        data  = {"message": "both"},
    )
    assert resp.status_code == 400


def test_embed_rejects_lossy_output():
    resp = client.post(
        "/api/embed",
        files = upload(png_bytes()),
        data  = {"message": "x", "output_format": "jpeg"},
    )
    assert resp.status_code == 400
    assert "JPEG" in resp.json()["detail"]


def test_lossy_default_output_format_fails_per_request(monkeypatch):
    monkeypatch.setattr(settings, "output_format", "JPEG")
    resp = client.post(
        "/api/embed",
        files = upload(png_bytes()),
        data  = {"message": "x"},
    )
    assert resp.status_code == 400
    assert "JPEG" in resp.json()["detail"]


def test_decode_garbage_is_structured_failure():
    resp = client.post("/api/decode", files=upload(b"garbage", "x.png"))
    assert resp.status_code == 200
    body = resp.json()
    assert not body["success"]
    assert body["format_detected"] == "UNKNOWN"


def test_decode_never_encoded_image():
    body = client.post("/api/decode", files=upload(png_bytes(fill=255))).json()
    assert not body["success"]
    assert "No hidden payload" in body["error"]


def test_decode_oversized_header_is_structured_failure():
    resp = client.post("/api/decode", files=upload(oversized_png(), "huge.png"))
    assert resp.status_code == 200
    body = resp.json()
    assert not body["success"]
    assert body["format_detected"] == "PNG"


def test_upload_limit(monkeypatch):
    monkeypatch.setattr(settings, "max_upload_bytes", 16)
    resp = client.post("/api/decode", files=upload(png_bytes()))
    assert resp.status_code == 413
