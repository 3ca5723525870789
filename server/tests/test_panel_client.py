from pathlib import Path
import io
import json
import sys
import unittest
from unittest.mock import MagicMock, patch
from urllib import error

SERVER_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(SERVER_DIR))

import panel_client
from format_text import ValidationError, encode


def _response(payload):
    resp = MagicMock()
    resp.read.return_value = json.dumps(payload).encode("utf-8") if payload is not None else b""
    cm = MagicMock()
    cm.__enter__.return_value = resp
    return cm


def _http_error(code, detail=""):
    body = io.BytesIO(json.dumps({"detail": detail}).encode("utf-8"))
    return error.HTTPError("http://panel/api", code, "err", {}, body)


class PanelClientTests(unittest.TestCase):
    def setUp(self):
        self.client = panel_client.PanelClient("http://panel/", "tok")

    def test_fetch_motd_decodes_and_purifies(self):
        with patch.object(panel_client.request, "urlopen", return_value=_response({"motd": encode("§cHi§")})) as urlopen:
            self.assertEqual(self.client.fetch_motd(), "§cHi")
        req = urlopen.call_args[0][0]
        self.assertEqual(req.full_url, "http://panel/api/info/motd")
        self.assertEqual(req.get_method(), "GET")
        self.assertEqual(req.get_header("Authorization"), "Bearer tok")

    def test_save_motd_posts_encoded_text(self):
        with patch.object(panel_client.request, "urlopen", return_value=_response({"ok": True})) as urlopen:
            self.assertIsNone(self.client.save_motd("§aline1\nline2§"))
        req = urlopen.call_args[0][0]
        self.assertEqual(req.get_method(), "POST")
        self.assertEqual(req.data, encode("§aline1\nline2").encode("utf-8"))

    def test_save_motd_rejects_three_lines_without_posting(self):
        with patch.object(panel_client.request, "urlopen") as urlopen:
            problem = self.client.save_motd("line1\nline2\nline3")
        self.assertIsInstance(problem, ValidationError)
        urlopen.assert_not_called()

    def test_http_errors_carry_status(self):
        for code, reason in [(400, "Bad request parameters"), (401, "Not logged in"), (500, "Internal server error")]:
            with patch.object(panel_client.request, "urlopen", side_effect=_http_error(code, "nope")):
                with self.assertRaises(panel_client.CollaboratorFailure) as ctx:
                    self.client.get("/api/info/motd")
            self.assertEqual(ctx.exception.status, code)
            self.assertEqual(ctx.exception.reason, reason)
            self.assertEqual(ctx.exception.detail, "nope")

    def test_unreachable_panel_is_status_zero(self):
        with patch.object(panel_client.request, "urlopen", side_effect=error.URLError("refused")):
            with self.assertRaises(panel_client.CollaboratorFailure) as ctx:
                self.client.post("/api/info/motd", "x")
        self.assertEqual(ctx.exception.status, 0)

    def test_unknown_status_reason(self):
        self.assertEqual(panel_client.CollaboratorFailure(418).reason, "HTTP 418")


class CliTests(unittest.TestCase):
    def test_set_reports_validation_failure(self):
        with patch.object(panel_client.request, "urlopen") as urlopen, \
                patch("sys.stderr", new_callable=io.StringIO) as stderr:
            code = panel_client.main(["--token", "t", "set", "a\\nb\\nc"])
        self.assertEqual(code, 2)
        self.assertIn("at most 2 lines", stderr.getvalue())
        urlopen.assert_not_called()

    def test_get_prints_ansi_preview(self):
        with patch.object(panel_client.request, "urlopen", return_value=_response({"motd": encode("§cHi")})), \
                patch("sys.stdout", new_callable=io.StringIO) as stdout:
            code = panel_client.main(["--token", "t", "get"])
        self.assertEqual(code, 0)
        self.assertIn("\x1b[91mHi\x1b[0m", stdout.getvalue())

    def test_request_failure_exit_code(self):
        with patch.object(panel_client.request, "urlopen", side_effect=_http_error(401)), \
                patch("sys.stderr", new_callable=io.StringIO) as stderr:
            code = panel_client.main(["--token", "t", "get"])
        self.assertEqual(code, 1)
        self.assertIn("Not logged in", stderr.getvalue())


if __name__ == "__main__":
    unittest.main()
