from pathlib import Path
import asyncio
import io
import sys
import unittest

SERVER_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(SERVER_DIR))

from format_parser import StyleState, parse
from glyph_table import width_class
from obfuscate import ObfuscationAnimator
from renderer import MountedText, render, to_runs
from terminal_preview import preview, to_ansi


class RenderTests(unittest.TestCase):
    def test_splits_runs_into_lines(self):
        lines = to_runs(render(parse("§aone\ntwo§l three")))
        self.assertEqual(lines, [
            [{"t": "one", "c": "green"}],
            [{"t": "two", "c": "green"}, {"t": " three", "c": "green", "b": True}],
        ])

    def test_keeps_empty_lines(self):
        lines = render(parse("a\n\nb"))
        self.assertEqual([len(line) for line in lines], [1, 0, 1])

    def test_line_limit_truncates(self):
        lines = render(parse("line1\n§cline2\nline3\nline4"), max_lines=2)
        self.assertEqual(len(lines), 2)
        self.assertEqual(lines[1][0].run.text, "line2")

    def test_line_limit_larger_than_text(self):
        self.assertEqual(len(render(parse("one"), 5)), 1)

    def test_zero_line_limit(self):
        self.assertEqual(render(parse("one\ntwo"), 0), [])


class AnsiTests(unittest.TestCase):
    def test_plain_text_has_no_escapes(self):
        self.assertEqual(to_ansi(render(parse("hello\nworld"))), "hello\nworld")

    def test_styled_text(self):
        out = to_ansi(render(parse("§c§lhi§r ok")))
        self.assertEqual(out, "\x1b[91;1mhi\x1b[0m ok")


class MountedTextTests(unittest.IsolatedAsyncioTestCase):
    async def test_only_obfuscated_units_animate(self):
        changes: list[str] = []
        animator = ObfuscationAnimator(interval=0.001)
        mounted = MountedText("§aplain §kSecret§r tail", lambda m: changes.append(m.display_text()),
                              animator=animator)
        mounted.mount()
        self.assertEqual(len(mounted.handles), 1)
        await asyncio.sleep(0.03)
        mounted.unmount()
        self.assertTrue(changes)
        for text in changes:
            self.assertTrue(text.startswith("plain "))
            self.assertTrue(text.endswith(" tail"))
            self.assertEqual(len(text), len("plain Secret tail"))
        scrambled = changes[-1][6:12]
        self.assertTrue(all(width_class(ch) == "normal" for ch in scrambled))
        self.assertEqual(mounted.lines[0][1].run.text, "Secret")

    async def test_unmount_stops_all_handles(self):
        animator = ObfuscationAnimator(interval=0.001)
        mounted = MountedText("§ka§r b §kc", animator=animator)
        mounted.mount()
        handles = mounted.handles
        self.assertEqual(len(handles), 2)
        await asyncio.sleep(0.02)
        mounted.unmount()
        mounted.unmount()
        counts = [h.ticks for h in handles]
        await asyncio.sleep(0.02)
        self.assertEqual([h.ticks for h in handles], counts)
        self.assertEqual(animator.active, 0)
        self.assertFalse(mounted.mounted)

    async def test_update_tears_down_old_handles_first(self):
        animator = ObfuscationAnimator(interval=0.001)
        mounted = MountedText("§kold", animator=animator)
        mounted.mount()
        old = mounted.handles[0]
        mounted.update("§knew text")
        self.assertFalse(old.alive)
        self.assertEqual(animator.active, 1)
        self.assertEqual(mounted.handles[0].text, "new text")
        mounted.unmount()

    async def test_line_limit_and_base_style(self):
        mounted = MountedText("one\ntwo\n§kthree", max_lines=2, base_style="§7")
        mounted.mount()
        self.assertEqual(len(mounted.lines), 2)
        self.assertEqual(mounted.handles, [])
        self.assertEqual(mounted.lines[0][0].run.style, StyleState(color="gray"))
        self.assertEqual(mounted.display_text(), "one\ntwo")
        mounted.unmount()

    async def test_purifies_before_parsing(self):
        mounted = MountedText("§xhi§")
        mounted.mount()
        self.assertEqual(mounted.display_text(), "hi")
        mounted.unmount()


class PreviewTests(unittest.IsolatedAsyncioTestCase):
    async def test_preview_draws_and_unmounts(self):
        stream = io.StringIO()
        mounted = await preview("§c§kab§r cd", 0.03, interval=0.001, stream=stream)
        self.assertFalse(mounted.mounted)
        output = stream.getvalue()
        self.assertIn("\x1b[91m", output)
        self.assertIn(" cd", output)


if __name__ == "__main__":
    unittest.main()
