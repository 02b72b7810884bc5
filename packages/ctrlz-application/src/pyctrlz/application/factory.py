import logging
from pathlib import Path
from typing import Optional

from pyctrlz.engine.config import ConfigManager
from pyctrlz.interfaces.types import Clock

from .registry import TreeRegistry

logger = logging.getLogger(__name__)


def create_registry(work_dir: Path, clock: Optional[Clock] = None) -> TreeRegistry:
    config = ConfigManager(work_dir)
    threshold = config.get("session.node_warning_threshold")
    logger.debug(f"Registry factory configured with node warning threshold: {threshold}")
    return TreeRegistry(clock=clock, node_warning_threshold=threshold)
