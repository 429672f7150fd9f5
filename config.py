from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent

DATA_PATH = str(PROJECT_ROOT / "data.csv")
BACKUP_DIR_NAME = "backups"

AUTOSAVE_DEBOUNCE_SECONDS = 2.0
# None disables the retry timer; a failed save is then retried on the next change or flush.
AUTOSAVE_RETRY_SECONDS = None
