"""MotdPulse FastAPI server: formatted MOTD storage and preview."""

from __future__ import annotations

import logging
import os
import socket
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, field_validator

from format_parser import parse
from format_text import TransportError, decode, encode, purify, validate
from renderer import render, to_runs

logger = logging.getLogger(__name__)

app = FastAPI(title="MotdPulse", version="1.0.0")
_security = HTTPBearer()

TOKEN = os.environ.get("MP_TOKEN", "changeme")
MOTD_FILE = Path(os.environ.get("MP_MOTD_FILE", str(Path.home() / ".config" / "motdpulse" / "motd.txt")))
DEFAULT_MOTD = "A Minecraft Server"

if TOKEN == "changeme":
    import sys

    print(
        "\n\033[1;31mFATAL: MP_TOKEN is set to 'changeme'.\033[0m\n"
        "Generate a secure token:  python3 -c \"import secrets; print(secrets.token_urlsafe(32))\"\n"
        "Then set it:  export MP_TOKEN=<your-token>\n",
        file=sys.stderr,
    )
    sys.exit(1)


def _env_int(name: str, fallback: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return fallback
    try:
        return int(raw)
    except ValueError:
        return fallback


MAX_LINES = _env_int("MP_MAX_LINES", 2)


def _verify(creds: HTTPAuthorizationCredentials = Depends(_security)) -> str:
    if creds.credentials != TOKEN:
        raise HTTPException(status_code=401, detail="Invalid token")
    return creds.credentials


def read_motd() -> str:
    """Return the stored encoded MOTD, or the encoded default."""
    if not MOTD_FILE.exists():
        return encode(DEFAULT_MOTD)
    return MOTD_FILE.read_text(encoding="ascii").strip()


def write_motd(encoded: str) -> None:
    MOTD_FILE.parent.mkdir(parents=True, exist_ok=True)
    MOTD_FILE.write_text(encoded, encoding="ascii")


def _parsed_lines(text: str, max_lines: int | None) -> list[list[dict]]:
    return to_runs(render(parse(text), max_lines))


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "hostname": socket.gethostname(),
    }


@app.get("/api/info/motd")
async def get_motd(_: str = Depends(_verify)):
    try:
        encoded = read_motd()
        text = purify(decode(encoded))
    except TransportError as exc:
        logger.error("Stored MOTD is not decodable: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc))
    except (OSError, UnicodeDecodeError) as exc:
        raise HTTPException(status_code=500, detail=str(exc))

    return {
        "motd": encoded,
        "parsed_lines": _parsed_lines(text, MAX_LINES),
        "ts": datetime.now(timezone.utc).isoformat(),
    }


class _RateLimiter:
    """Simple in-memory sliding-window rate limiter."""

    def __init__(self, max_per_sec: int = 5):
        self._max = max_per_sec
        self._timestamps: list[float] = []

    def check(self) -> None:
        now = time.monotonic()
        self._timestamps = [t for t in self._timestamps if now - t < 1.0]
        if len(self._timestamps) >= self._max:
            raise HTTPException(status_code=429, detail="Rate limit exceeded")
        self._timestamps.append(now)


_motd_limiter = _RateLimiter(max_per_sec=5)


@app.post("/api/info/motd")
async def post_motd(request: Request, _: str = Depends(_verify)):
    _motd_limiter.check()
    body = (await request.body()).decode("ascii", errors="replace").strip()
    try:
        text = purify(decode(body))
    except TransportError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    problem = validate(text, max_lines=MAX_LINES)
    if problem is not None:
        raise HTTPException(status_code=400, detail=problem.reason)

    try:
        write_motd(encode(text))
    except OSError as exc:
        logger.error("Failed to store MOTD: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc))
    logger.info("MOTD updated (%d chars)", len(text))
    return {"ok": True}


class PreviewRequest(BaseModel):
    text: str
    max_lines: Optional[int] = None

    @field_validator("max_lines")
    @classmethod
    def non_negative(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value < 0:
            raise ValueError("max_lines must be non-negative")
        return value


@app.post("/preview")
async def post_preview(body: PreviewRequest, _: str = Depends(_verify)):
    text = purify(body.text)
    return {
        "text": text,
        "parsed_lines": _parsed_lines(text, body.max_lines),
    }


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host="127.0.0.1", port=8788)
