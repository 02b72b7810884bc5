import json
from pathlib import Path

import pytest
from pyctrlz.cli.main import app
from pyctrlz.engine.hasher import hash_content

SCENARIO = """\
document: notes.txt
initial: "ABC"
steps:
  - commit: {content: "ABX", label: h1}
  - commit: {content: "ABXY", label: h2, cursor: [0, 4]}
  - undo
  - undo
  - undo
  - redo
  - commit: {content: "ABXZ", label: h3}
  - goto: h1
  - redo
"""


@pytest.fixture
def scenario_file(tmp_path: Path) -> Path:
    path = tmp_path / "session.yml"
    path.write_text(SCENARIO, encoding="utf-8")
    return path


def invoke(runner, tmp_path: Path, *args: str):
    return runner.invoke(app, [*args, "-w", str(tmp_path)])


class TestReplayCommand:
    def test_replay_reports_each_step(self, runner, tmp_path, scenario_file):
        result = invoke(runner, tmp_path, "replay", str(scenario_file))

        assert result.exit_code == 0, result.output
        assert "已到达初始快照" in result.stderr
        assert "历史在此分叉为 2 个分支" in result.stderr
        assert "历史树共 5 个节点" in result.stderr
        assert "HEAD" in result.stdout
        assert "INITIAL" in result.stdout
        assert "h2" in result.stdout

    def test_replay_no_tree(self, runner, tmp_path, scenario_file):
        result = invoke(runner, tmp_path, "replay", str(scenario_file), "--no-tree")
        assert result.exit_code == 0
        assert result.stdout == ""

    def test_replay_verify(self, runner, tmp_path, scenario_file):
        result = invoke(runner, tmp_path, "replay", str(scenario_file), "--verify", "--no-tree")
        assert result.exit_code == 0
        assert "完整性校验通过: 5 个节点" in result.stderr

    def test_replay_json(self, runner, tmp_path, scenario_file):
        result = invoke(runner, tmp_path, "replay", str(scenario_file), "--json")

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["document"] == "notes.txt"
        assert data["head"] == hash_content("ABX")
        assert data["labels"]["h3"] == hash_content("ABXZ")
        assert len(data["nodes"]) == 5
        assert [step["action"] for step in data["steps"]][:3] == ["commit", "commit", "undo"]

    def test_failed_step_sets_exit_code(self, runner, tmp_path):
        script = tmp_path / "bad_goto.yml"
        script.write_text('initial: "a"\nsteps:\n  - goto: nothing-matches\n', encoding="utf-8")
        result = invoke(runner, tmp_path, "replay", str(script), "--no-tree")

        assert result.exit_code == 1
        assert "未找到匹配 'nothing-matches' 的节点" in result.stderr

    def test_invalid_script(self, runner, tmp_path):
        script = tmp_path / "invalid.yml"
        script.write_text("steps:\n  - teleport\n", encoding="utf-8")
        result = invoke(runner, tmp_path, "replay", str(script))

        assert result.exit_code == 1
        assert "无效" in result.stderr
        assert "teleport" in result.stderr

    def test_document_name_falls_back_to_config(self, runner, tmp_path):
        (tmp_path / ".ctrlz").mkdir()
        (tmp_path / ".ctrlz" / "config.yml").write_text("session:\n  default_document: scratch.md\n", encoding="utf-8")
        script = tmp_path / "anon.yml"
        script.write_text('initial: "x"\n', encoding="utf-8")
        result = invoke(runner, tmp_path, "replay", str(script), "--json")

        assert result.exit_code == 0
        assert json.loads(result.stdout)["document"] == "scratch.md"


class TestShowCommand:
    def test_show_by_label(self, runner, tmp_path, scenario_file):
        result = invoke(runner, tmp_path, "show", str(scenario_file), "h2")

        assert result.exit_code == 0, result.output
        assert hash_content("ABXY")[:7] in result.stdout
        assert "cursor=0:4" in result.stdout
        assert "+1 -1 lines" in result.stdout
        assert result.stdout.rstrip().endswith("ABXY")

    def test_show_json(self, runner, tmp_path, scenario_file):
        result = invoke(runner, tmp_path, "show", str(scenario_file), "initial", "--json")

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["hash"] == hash_content("ABC")
        assert payload["content"] == "ABC"
        assert payload["children"] == [hash_content("ABX")]

    def test_show_by_hash_prefix(self, runner, tmp_path, scenario_file):
        prefix = hash_content("ABXZ")[:12]
        result = invoke(runner, tmp_path, "show", str(scenario_file), prefix, "--json")

        assert result.exit_code == 0
        assert json.loads(result.stdout)["content"] == "ABXZ"

    def test_show_unknown_target(self, runner, tmp_path, scenario_file):
        result = invoke(runner, tmp_path, "show", str(scenario_file), "nope")

        assert result.exit_code == 1
        assert "未找到匹配 'nope' 的节点" in result.stderr


def test_failed_step_sets_exit_code_with_json(runner, tmp_path):
    script = tmp_path / "bad_goto.yml"
    script.write_text('initial: "a"\nsteps:\n  - goto: zzzz\n', encoding="utf-8")
    result = invoke(runner, tmp_path, "replay", str(script), "--json")

    assert result.exit_code == 1
    data = json.loads(result.stdout)
    assert data["steps"][0]["success"] is False
    assert data["steps"][0]["msg_id"] == "replay.goto.notFound"


def test_step_messages_use_configured_hash_length(runner, tmp_path):
    (tmp_path / ".ctrlz").mkdir()
    (tmp_path / ".ctrlz" / "config.yml").write_text("display:\n  short_hash_length: 12\n", encoding="utf-8")
    script = tmp_path / "one.yml"
    script.write_text('initial: "a"\nsteps:\n  - commit: "ab"\n', encoding="utf-8")
    result = invoke(runner, tmp_path, "replay", str(script), "--no-tree")

    assert result.exit_code == 0
    assert f"新状态已记录: {hash_content('ab')[:12]}" in result.stderr
