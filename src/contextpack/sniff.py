"""
Content sniffing used to decide whether a file is text.

:func:`detect_content_type` follows the WHATWG MIME sniffing algorithm in
the reduced form that web servers commonly ship: a fixed, ordered table of
signatures is tried against the first 512 bytes and the first hit wins.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

SNIFF_LEN = 512
OCTET_STREAM = "application/octet-stream"

_WS = b"\t\n\x0c\r "

Matcher = Callable[[bytes, int], Optional[str]]


def _exact(sig: bytes, ct: str) -> Matcher:
    def match(data: bytes, first_non_ws: int) -> Optional[str]:
        return ct if data.startswith(sig) else None
    return match


def _masked(mask: bytes, pat: bytes, ct: str, skip_ws: bool = False) -> Matcher:
    if len(mask) != len(pat):
        raise ValueError(f"mask and pattern lengths differ for {ct}")

    def match(data: bytes, first_non_ws: int) -> Optional[str]:
        if skip_ws:
            data = data[first_non_ws:]
        if len(data) < len(pat):
            return None
        for i, pb in enumerate(pat):
            if data[i] & mask[i] != pb:
                return None
        return ct
    return match


def _html(tag: bytes) -> Matcher:
    def match(data: bytes, first_non_ws: int) -> Optional[str]:
        data = data[first_non_ws:]
        if len(data) < len(tag) + 1:
            return None
        for i, b in enumerate(tag):
            db = data[i]
            if 0x41 <= b <= 0x5A:
                db &= 0xDF
            if b != db:
                return None
        # the tag must be terminated by a space or '>'
        if data[len(tag)] not in b" >":
            return None
        return "text/html; charset=utf-8"
    return match


def _mp4(data: bytes, first_non_ws: int) -> Optional[str]:
    if len(data) < 12:
        return None
    box_size = int.from_bytes(data[:4], "big")
    if len(data) < box_size or box_size % 4 != 0:
        return None
    if data[4:8] != b"ftyp":
        return None
    for st in range(8, box_size, 4):
        if st == 12:
            # skip the minor version field
            continue
        if data[st:st + 3] == b"mp4":
            return "video/mp4"
    return None


def _text(data: bytes, first_non_ws: int) -> Optional[str]:
    for b in data[first_non_ws:]:
        if b <= 0x08 or b == 0x0B or 0x0E <= b <= 0x1A or 0x1C <= b <= 0x1F:
            return None
    return "text/plain; charset=utf-8"


_SIGNATURES: List[Matcher] = [
    _html(b"<!DOCTYPE HTML"),
    _html(b"<HTML"),
    _html(b"<HEAD"),
    _html(b"<SCRIPT"),
    _html(b"<IFRAME"),
    _html(b"<H1"),
    _html(b"<DIV"),
    _html(b"<FONT"),
    _html(b"<TABLE"),
    _html(b"<A"),
    _html(b"<STYLE"),
    _html(b"<TITLE"),
    _html(b"<B"),
    _html(b"<BODY"),
    _html(b"<BR"),
    _html(b"<P"),
    _html(b"<!--"),
    _masked(b"\xFF\xFF\xFF\xFF\xFF", b"<?xml", "text/xml; charset=utf-8", skip_ws=True),
    _exact(b"%PDF-", "application/pdf"),
    _exact(b"%!PS-Adobe-", "application/postscript"),
    # byte order marks
    _masked(b"\xFF\xFF\x00\x00", b"\xFE\xFF\x00\x00", "text/plain; charset=utf-16be"),
    _masked(b"\xFF\xFF\x00\x00", b"\xFF\xFE\x00\x00", "text/plain; charset=utf-16le"),
    _masked(b"\xFF\xFF\xFF\x00", b"\xEF\xBB\xBF\x00", "text/plain; charset=utf-8"),
    # images
    _exact(b"\x00\x00\x01\x00", "image/x-icon"),
    _exact(b"\x00\x00\x02\x00", "image/x-icon"),
    _exact(b"BM", "image/bmp"),
    _exact(b"GIF87a", "image/gif"),
    _exact(b"GIF89a", "image/gif"),
    _masked(
        b"\xFF\xFF\xFF\xFF\x00\x00\x00\x00\xFF\xFF\xFF\xFF\xFF\xFF",
        b"RIFF\x00\x00\x00\x00WEBPVP",
        "image/webp",
    ),
    _exact(b"\x89PNG\x0D\x0A\x1A\x0A", "image/png"),
    _exact(b"\xFF\xD8\xFF", "image/jpeg"),
    # audio and video
    _masked(b"\xFF\xFF\xFF\xFF", b".snd", "audio/basic"),
    _masked(
        b"\xFF\xFF\xFF\xFF\x00\x00\x00\x00\xFF\xFF\xFF\xFF",
        b"FORM\x00\x00\x00\x00AIFF",
        "audio/aiff",
    ),
    _masked(b"\xFF\xFF\xFF", b"ID3", "audio/mpeg"),
    _masked(b"\xFF\xFF\xFF\xFF\xFF", b"OggS\x00", "application/ogg"),
    _masked(b"\xFF" * 8, b"MThd\x00\x00\x00\x06", "audio/midi"),
    _masked(
        b"\xFF\xFF\xFF\xFF\x00\x00\x00\x00\xFF\xFF\xFF\xFF",
        b"RIFF\x00\x00\x00\x00AVI ",
        "video/avi",
    ),
    _masked(
        b"\xFF\xFF\xFF\xFF\x00\x00\x00\x00\xFF\xFF\xFF\xFF",
        b"RIFF\x00\x00\x00\x00WAVE",
        "audio/wave",
    ),
    _mp4,
    _exact(b"\x1A\x45\xDF\xA3", "video/webm"),
    # fonts
    _masked(b"\x00" * 34 + b"\xFF\xFF", b"\x00" * 34 + b"LP", "application/vnd.ms-fontobject"),
    _exact(b"\x00\x01\x00\x00", "font/ttf"),
    _exact(b"OTTO", "font/otf"),
    _exact(b"ttcf", "font/collection"),
    _exact(b"wOFF", "font/woff"),
    _exact(b"wOF2", "font/woff2"),
    # archives
    _exact(b"\x1F\x8B\x08", "application/x-gzip"),
    _exact(b"PK\x03\x04", "application/zip"),
    _exact(b"Rar!\x1A\x07\x00", "application/x-rar-compressed"),
    _exact(b"Rar!\x1A\x07\x01\x00", "application/x-rar-compressed"),
    _exact(b"\x00\x61\x73\x6D", "application/wasm"),
    # must stay last
    _text,
]


def detect_content_type(data: bytes) -> str:
    """
    Return the sniffed media type of *data*, e.g. ``text/plain; charset=utf-8``.

    Only the first 512 bytes are considered. Data matching no signature is
    ``application/octet-stream``.
    """
    data = data[:SNIFF_LEN]
    first_non_ws = 0
    while first_non_ws < len(data) and data[first_non_ws] in _WS:
        first_non_ws += 1

    for sig in _SIGNATURES:
        ct = sig(data, first_non_ws)
        if ct:
            return ct
    return OCTET_STREAM


def is_text_sample(sample: bytes) -> bool:
    # an empty sample carries no evidence of being text
    if not sample:
        return False
    return detect_content_type(sample).startswith("text/")


def is_binary_file(path: Path) -> bool:
    """Classify *path* from its first 512 bytes; unreadable files count as binary."""
    try:
        with path.open("rb") as fh:
            sample = fh.read(SNIFF_LEN)
    except OSError as e:
        logger.debug("Treating %s as binary, sample read failed: %s", path, e)
        return True
    return not is_text_sample(sample)
