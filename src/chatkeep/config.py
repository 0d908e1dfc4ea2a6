"""Central configuration for paths and constants."""

import os
from pathlib import Path

# Data directory — override with CHATKEEP_DATA_DIR env var
DATA_DIR = Path(
    os.environ.get("CHATKEEP_DATA_DIR", str(Path.home() / ".chatkeep"))
)

# Durable medium (SQLite key/value file)
DURABLE_PATH = DATA_DIR / "storage.db"

# Character budget of the durable medium, used as a byte proxy
STORAGE_QUOTA = 5 * 1024 * 1024

STORAGE_KEYS = {
    "CHAT_HISTORY": "chatHistory",
    "SETTINGS": "chatSettings",
    "BACKUP": "chatBackup",
    "CURRENT_CHAT": "currentChat",
    "LAST_MESSAGE": "lastMessage",
}

# Sentinel written and removed by the availability probe
PROBE_KEY = "__storage_test__"

DEFAULT_SETTINGS = {
    "theme": "light",
    "fontSize": "medium",
    "autoScroll": True,
}

# Conversation defaults
UNTITLED_TITLE = "Untitled Chat"
TITLE_LENGTH = 30  # Characters of the first message used as a title
SENDERS = {"user", "assistant"}

# Shown in place of a reply whenever generation fails
FALLBACK_REPLY = "Sorry, I encountered an error. Please try again."
