from dataclasses import dataclass
from pathlib import Path

# === PATH CONFIGURATION ===
DATA_DIR = Path("data")

TOKEN_FILE = DATA_DIR / "token.json"
CREDENTIALS_FILE = DATA_DIR / "credentials.json"

# === SPREADSHEET LAYOUT ===
SPREADSHEET_NAME = "names.xls"
BIRDS_SHEET = "Birds"
TAGS_SHEET = "Tags"
SENTINEL = "-"  # first cell marking the end of a sheet's data

IMAGE_SUFFIXES = (".jpg", ".jpeg")

# Ids used in place of real ones when nothing is uploaded
DRY_RUN_PHOTO_ID = "dry-run"
DRY_RUN_ALBUM_ID = "dry-run-album"

# === SCOPES ===
SCOPES = [
    "https://www.googleapis.com/auth/photoslibrary",
    "https://www.googleapis.com/auth/photoslibrary.sharing"
]


@dataclass(frozen=True)
class UploadOptions:
    """
    Options for one run, passed explicitly to every step that needs them.
    """
    dry_run: bool = False
    tags_root: bool = False  # root directories hold tag codes instead of bird codes
    check: bool = False
    debug: bool = False
