import pytest
from pyctrlz.engine.version_tree import VersionTree
from pyctrlz.test_utils.helpers import FakeClock
from typer.testing import CliRunner


@pytest.fixture
def runner() -> CliRunner:
    """提供一个可复用的 CliRunner 实例。"""
    return CliRunner()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tree(fake_clock: FakeClock) -> VersionTree:
    """
    提供一棵以 "ABC" 为初始快照的版本树。
    这是最常用的 fixture，用于所有需要核心导航逻辑的测试。
    """
    return VersionTree("ABC", clock=fake_clock)


@pytest.fixture
def empty_tree(fake_clock: FakeClock) -> VersionTree:
    return VersionTree("", clock=fake_clock)
