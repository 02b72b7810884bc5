import logging

import pytest
from pyctrlz.cli.logger_config import resolve_level, setup_logging


@pytest.fixture
def restore_root_level():
    root = logging.getLogger()
    level = root.level
    yield root
    root.setLevel(level)


@pytest.mark.parametrize(
    "name, expected",
    [("DEBUG", logging.DEBUG), ("warning", logging.WARNING), ("Error", logging.ERROR), ("LOUD", logging.INFO)],
)
def test_resolve_level(name, expected):
    assert resolve_level(name) == expected


def test_verbose_forces_debug(restore_root_level):
    root = setup_logging(verbose=True)
    assert root is restore_root_level
    assert root.level == logging.DEBUG


def test_existing_handlers_are_kept(restore_root_level):
    before = list(restore_root_level.handlers)
    setup_logging()
    setup_logging()
    added = [h for h in restore_root_level.handlers if h not in before]
    for handler in added:
        restore_root_level.removeHandler(handler)
    assert len(added) == (0 if before else 1)
