import json
from pathlib import Path

from pyctrlz.cli.main import app
from pyctrlz.engine.hasher import hash_content


def write_pair(tmp_path: Path, old: str, new: str):
    old_file = tmp_path / "old.txt"
    new_file = tmp_path / "new.txt"
    old_file.write_text(old, encoding="utf-8")
    new_file.write_text(new, encoding="utf-8")
    return str(old_file), str(new_file)


def test_diff_identical_files(runner, tmp_path):
    old, new = write_pair(tmp_path, "same", "same")
    result = runner.invoke(app, ["diff", old, new, "-w", str(tmp_path)])

    assert result.exit_code == 0
    assert "两个文件内容相同" in result.stderr
    assert result.stdout == ""


def test_diff_reports_stats_and_summary(runner, tmp_path):
    old, new = write_pair(tmp_path, "ABC", "ABXY")
    result = runner.invoke(app, ["diff", old, new, "-w", str(tmp_path)])

    assert result.exit_code == 0
    assert "3 条操作 (保留 2 字符, 删除 1 字符, 新增 2 字符)" in result.stderr
    assert "-ABC" in result.stdout
    assert "+ABXY" in result.stdout


def test_diff_unified(runner, tmp_path):
    old, new = write_pair(tmp_path, "one\ntwo\n", "one\n2\n")
    result = runner.invoke(app, ["diff", old, new, "--unified", "-c", "0", "-w", str(tmp_path)])

    assert result.exit_code == 0
    assert "--- a/new.txt" in result.stdout
    assert "-two" in result.stdout
    assert "+2" in result.stdout
    assert " one" not in result.stdout.splitlines()


def test_diff_json_output(runner, tmp_path):
    old, new = write_pair(tmp_path, "ABC", "ABX")
    result = runner.invoke(app, ["diff", old, new, "--json", "-w", str(tmp_path)])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["old_hash"] == hash_content("ABC")
    assert payload["new_hash"] == hash_content("ABX")
    assert payload["operations"] == [
        {"type": "keep", "position": 0, "length": 2},
        {"type": "remove", "position": 2, "length": 1},
        {"type": "add", "position": 2, "content": "X"},
    ]


def test_diff_missing_file(runner, tmp_path):
    old, _ = write_pair(tmp_path, "a", "b")
    result = runner.invoke(app, ["diff", old, str(tmp_path / "nope.txt")])
    assert result.exit_code == 2


def test_diff_verbose(runner, tmp_path):
    old, new = write_pair(tmp_path, "a", "ab")
    result = runner.invoke(app, ["diff", old, new, "-v", "-w", str(tmp_path)])
    assert result.exit_code == 0
    assert "1 条操作" not in result.stderr
    assert "2 条操作" in result.stderr
