from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path

from config import BACKUP_DIR_NAME

logger = logging.getLogger(__name__)


def create_backup(data_path: str, backup_dir_name: str = BACKUP_DIR_NAME) -> str | None:
    source = Path(data_path)
    if not source.exists() or source.stat().st_size == 0:
        return None
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_dir = source.parent / backup_dir_name
    backup_dir.mkdir(exist_ok=True)
    backup_path = backup_dir / f"{source.stem}_backup_{stamp}{source.suffix}"
    shutil.copy2(source, backup_path)
    logger.info("Backup created: %s", backup_path)
    return str(backup_path)
