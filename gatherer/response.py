"""HTTP responses received by a collector."""

from __future__ import annotations

import codecs
import re
import unicodedata
from dataclasses import dataclass, field
from email.message import Message
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlsplit

from charset_normalizer import from_bytes
from requests.structures import CaseInsensitiveDict

from .request import Request
from .trace import HTTPTrace

_NON_TEXT_TYPES = ("image/", "video/", "audio/", "font/")

_BOMS = (
    (codecs.BOM_UTF8, "utf-8"),
    (codecs.BOM_UTF16_LE, "utf-16-le"),
    (codecs.BOM_UTF16_BE, "utf-16-be"),
)

_LABEL_ALIASES = {
    label: "cp1252"
    for label in (
        "ascii", "us-ascii", "iso-8859-1", "iso8859-1", "iso_8859-1", "latin1",
        "latin-1", "l1", "cp819", "ibm819", "windows-1252", "cp1252", "x-cp1252",
    )
}
_LABEL_ALIASES.update({"utf-16": "utf-16-le", "utf8": "utf-8", "unicode-1-1-utf-8": "utf-8"})

_META_CHARSET = re.compile(rb"<meta[^>]+charset\s*=\s*[\"']?([a-zA-Z0-9_\-:.]+)", re.IGNORECASE)

_SEPARATORS = re.compile(r"[./\\]")
_ILLEGAL = re.compile(r"[^A-Za-z0-9\-]")
_DASHES = re.compile(r"-{2,}")


@dataclass
class Response:
    """An HTTP response made by a collector."""

    status_code: int
    body: bytes = b""
    ctx: dict[str, Any] | None = None
    request: Request | None = None
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    trace: HTTPTrace | None = None

    def save(self, file_name: str | Path) -> None:
        """Write the body to a file."""
        Path(file_name).write_bytes(self.body)

    def file_name(self) -> str:
        """A safe file name from Content-Disposition or from the request URL."""
        disposition = self.headers.get("Content-Disposition", "")
        if disposition:
            message = Message()
            message["Content-Disposition"] = disposition
            name = message.get_filename()
            if name:
                return sanitize_file_name(name)
        parts = urlsplit(self.request.url if self.request else "")
        path = unquote(parts.path)
        if parts.query:
            return sanitize_file_name(f"{path}_{parts.query}")
        return sanitize_file_name(path.removeprefix("/"))

    def fix_charset(self, detect_charset: bool = False, default_encoding: str = "") -> None:
        """Convert the body to UTF-8 according to its declared or detected charset."""
        if not self.body:
            return
        if default_encoding:
            self.body = encode_bytes(self.body, "text/plain; charset=" + default_encoding)
            return
        content_type = self.headers.get("Content-Type", "").lower()
        if any(kind in content_type for kind in _NON_TEXT_TYPES):
            return
        if "charset" not in content_type:
            if not detect_charset:
                return
            best = from_bytes(self.body).best()
            if best is None:
                raise ValueError("could not detect the character set of the body")
            content_type = "text/plain; charset=" + best.encoding.replace("_", "-")
        if "utf-8" in content_type or "utf8" in content_type:
            return
        self.body = encode_bytes(self.body, content_type)


def _lookup_label(label: str | None) -> str | None:
    if not label:
        return None
    label = label.strip().lower()
    if label in _LABEL_ALIASES:
        return _LABEL_ALIASES[label]
    try:
        return codecs.lookup(label).name
    except LookupError:
        return None


def _content_type_charset(content_type: str) -> str | None:
    message = Message()
    message["Content-Type"] = content_type
    return message.get_content_charset()


def encode_bytes(body: bytes, content_type: str) -> bytes:
    """Decode a body in the charset the content type names, returning UTF-8."""
    for bom, codec in _BOMS:
        if body.startswith(bom):
            return body[len(bom):].decode(codec, errors="replace").encode("utf-8")
    codec = _lookup_label(_content_type_charset(content_type))
    if codec is None:
        found = _META_CHARSET.search(body[:1024])
        if found:
            codec = _lookup_label(found.group(1).decode("ascii"))
    if codec is None:
        try:
            return body.decode("utf-8").encode("utf-8")
        except UnicodeDecodeError:
            codec = "cp1252"
    return body.decode(codec, errors="replace").encode("utf-8")


def _extension(name: str) -> str:
    dot = name.rfind(".")
    return name[dot:] if dot > name.rfind("/") else ""


def _base_name(text: str) -> str:
    text = unicodedata.normalize("NFKD", text)
    text = "".join(ch for ch in text if not unicodedata.combining(ch)).strip()
    text = _SEPARATORS.sub("-", text)
    text = _ILLEGAL.sub("-", text)
    return _DASHES.sub("-", text)


def sanitize_file_name(name: str) -> str:
    """Make a string safe to use as a file name, keeping its extension."""
    ext = _extension(name)
    clean_ext = _base_name(ext) or ".unknown"
    stem = _base_name(name[: len(name) - len(ext)])
    return f"{stem}.{clean_ext[1:]}".replace("-", "_")