from pyctrlz.engine.diff_engine import generate_diff
from pyctrlz.engine.preview import generate_diff_summary, generate_unified_diff, summarize_script


class TestSummarizeScript:
    def test_counts_characters_per_kind(self):
        stats = summarize_script(generate_diff("ABC", "ABXY"))
        assert stats.kept == 2
        assert stats.removed == 1
        assert stats.added == 2
        assert stats.operations == 3

    def test_empty_script(self):
        stats = summarize_script([])
        assert (stats.kept, stats.removed, stats.added, stats.operations) == (0, 0, 0, 0)


class TestUnifiedDiff:
    def test_identical_content(self):
        result = generate_unified_diff("same\n", "same\n", filename="a.txt")
        assert result == "--- a/a.txt\n+++ b/a.txt\n@@ No changes @@"

    def test_line_change(self):
        result = generate_unified_diff("one\ntwo\nthree", "one\n2\nthree", filename="n.txt")
        lines = result.splitlines()
        assert lines[0] == "--- a/n.txt"
        assert lines[1] == "+++ b/n.txt"
        assert "-two" in lines
        assert "+2" in lines
        assert " one" in lines

    def test_context_lines_are_respected(self):
        old = "\n".join(str(i) for i in range(20))
        new = old.replace("10", "ten")
        narrow = generate_unified_diff(old, new, context_lines=0)
        assert " 9" not in narrow.splitlines()
        wide = generate_unified_diff(old, new, context_lines=3)
        assert " 9" in wide.splitlines()

    def test_trailing_newline_only(self):
        result = generate_unified_diff("text", "text\n")
        assert result.endswith("@@ Whitespace-only changes @@")


class TestDiffSummary:
    def test_no_changes(self):
        assert generate_diff_summary("a\nb", "a\nb") == "No changes"

    def test_added_and_removed_lines(self):
        summary = generate_diff_summary("keep\nold", "keep\nnew\nextra")
        lines = summary.splitlines()
        assert lines[0] == "+2 -1 lines"
        assert "-old" in lines
        assert "+new extra" in lines

    def test_only_additions(self):
        summary = generate_diff_summary("a", "a\nb")
        assert summary.splitlines()[0] == "+1 lines"

    def test_changes_are_truncated(self):
        old = "\n".join(f"line{i}" for i in range(0, 20, 2))
        new = "\n".join(f"line{i}" if i % 4 else f"changed{i}" for i in range(0, 20, 2))
        summary = generate_diff_summary(old, new, max_changes=2)
        body = summary.splitlines()[1:]
        assert len(body) == 3
        assert body[-1] == "..."
