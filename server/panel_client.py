#!/usr/bin/env python3
"""Fetch, save and preview the server MOTD through the panel HTTP API."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any
from urllib import error, request

from format_parser import parse
from format_text import ValidationError, decode, encode, purify, validate
from obfuscate import DEFAULT_FRAME_INTERVAL
from renderer import render
from terminal_preview import preview, to_ansi

logger = logging.getLogger(__name__)

DEFAULT_PANEL_URL = "http://127.0.0.1:8788"
DEFAULT_TIMEOUT = 8.0
MOTD_PATH = "/api/info/motd"
MOTD_MAX_LINES = 2
# Editor preview draws uncolored text in gray
PREVIEW_BASE_STYLE = "§7"

STATUS_MESSAGES: dict[int, str] = {
    0: "Panel unreachable",
    400: "Bad request parameters",
    401: "Not logged in",
    403: "Forbidden",
    429: "Too many requests",
    500: "Internal server error",
}


class CollaboratorFailure(RuntimeError):
    """The panel answered with a non-2xx status, or not at all."""

    def __init__(self, status: int, detail: str = "") -> None:
        self.status = status
        self.detail = detail
        reason = STATUS_MESSAGES.get(status, f"HTTP {status}")
        super().__init__(f"{reason}: {detail}" if detail else reason)

    @property
    def reason(self) -> str:
        return STATUS_MESSAGES.get(self.status, f"HTTP {self.status}")


class PanelClient:
    def __init__(self, base_url: str, token: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout

    def _request(self, method: str, path: str, data: bytes | None, content_type: str | None) -> Any:
        headers = {"Authorization": f"Bearer {self.token}"}
        if content_type:
            headers["Content-Type"] = content_type
        req = request.Request(url=self.base_url + path, data=data, headers=headers, method=method)
        try:
            with request.urlopen(req, timeout=self.timeout) as resp:
                body = resp.read()
        except error.HTTPError as exc:
            raise CollaboratorFailure(int(exc.code), _error_detail(exc)) from exc
        except (error.URLError, OSError) as exc:
            raise CollaboratorFailure(0, str(exc)) from exc
        if not body:
            return None
        return json.loads(body.decode("utf-8"))

    def get(self, path: str) -> Any:
        return self._request("GET", path, None, None)

    def post(self, path: str, body: Any = None) -> Any:
        if body is None:
            return self._request("POST", path, None, None)
        if isinstance(body, str):
            return self._request("POST", path, body.encode("utf-8"), "text/plain; charset=utf-8")
        return self._request("POST", path, json.dumps(body).encode("utf-8"), "application/json")

    def fetch_motd(self) -> str:
        """Return the stored MOTD, purified and ready for editing."""
        payload = self.get(MOTD_PATH) or {}
        return purify(decode(str(payload.get("motd", ""))))

    def save_motd(self, raw: str) -> ValidationError | None:
        """Store *raw*; returns the validation failure instead of posting."""
        text = purify(raw)
        problem = validate(text, max_lines=MOTD_MAX_LINES)
        if problem is not None:
            return problem
        self.post(MOTD_PATH, encode(text))
        logger.info("Saved MOTD (%d chars)", len(text))
        return None


def _error_detail(exc: error.HTTPError) -> str:
    try:
        payload = json.loads(exc.read().decode("utf-8"))
    except Exception:
        return ""
    if isinstance(payload, dict):
        return str(payload.get("detail", ""))
    return ""


def env_float(name: str, fallback: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return fallback
    try:
        return float(raw)
    except ValueError:
        return fallback


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Edit the server MOTD")
    parser.add_argument("--url", default="", help="Override MP_PANEL_URL")
    parser.add_argument("--token", default="", help="Override MP_PANEL_TOKEN")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("get", help="Print the current MOTD")
    set_cmd = sub.add_parser("set", help="Save a new MOTD")
    set_cmd.add_argument("text")
    preview_cmd = sub.add_parser("preview", help="Show animated preview of TEXT (or the current MOTD)")
    preview_cmd.add_argument("text", nargs="?")
    preview_cmd.add_argument("--seconds", type=float, default=5.0)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    url = args.url or os.environ.get("MP_PANEL_URL", DEFAULT_PANEL_URL)
    token = (args.token or os.environ.get("MP_PANEL_TOKEN", "")).strip()
    client = PanelClient(url, token, timeout=env_float("MP_PANEL_TIMEOUT", DEFAULT_TIMEOUT))

    try:
        if args.command == "get":
            text = client.fetch_motd()
            print(to_ansi(render(parse(PREVIEW_BASE_STYLE + text), MOTD_MAX_LINES)))
            return 0
        if args.command == "set":
            problem = client.save_motd(args.text.replace("\\n", "\n"))
            if problem is not None:
                print(problem.reason, file=sys.stderr)
                return 2
            return 0
        text = args.text.replace("\\n", "\n") if args.text is not None else client.fetch_motd()
        interval = env_float("MP_FRAME_INTERVAL", DEFAULT_FRAME_INTERVAL)
        asyncio.run(preview(
            text,
            args.seconds,
            max_lines=MOTD_MAX_LINES,
            interval=interval,
            base_style=PREVIEW_BASE_STYLE,
        ))
        return 0
    except CollaboratorFailure as exc:
        print(f"Request failed: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"Stored MOTD is unreadable: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
