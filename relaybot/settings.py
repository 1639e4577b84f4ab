import os
from dotenv import load_dotenv

load_dotenv()


def _csv(value: str | None) -> tuple[str, ...]:
    return tuple(v.strip() for v in (value or "").split(",") if v.strip())


# === IRC connection ===

IRC_SERVER = os.getenv("IRC_SERVER", "irc.libera.chat")
IRC_PORT = int(os.getenv("IRC_PORT", "6667"))
IRC_TLS = os.getenv("IRC_TLS", "false").lower() == "true"

IRC_NICK = os.getenv("IRC_NICK", "zabbixbot")
IRC_USER = os.getenv("IRC_USER", "zabbix")
IRC_REALNAME = os.getenv("IRC_REALNAME", "Zabbix IRC Bot")
IRC_CHANNEL = os.getenv("IRC_CHANNEL", "#zabbix")

# "self": fixed back-off timer owned by the lifecycle
# "connector": every retry is delegated to irc.connector.Connector
RECONNECT_MODE = os.getenv("RECONNECT_MODE", "self").lower()
RECONNECT_DELAY_SECONDS = float(os.getenv("RECONNECT_DELAY_SECONDS", "60"))
KEEPALIVE_INTERVAL_SECONDS = float(os.getenv("KEEPALIVE_INTERVAL_SECONDS", "300"))

# === Commands ===

COMMAND_TRIGGER = os.getenv("COMMAND_TRIGGER", "!")

# Commands answered by other bots sharing the channel
IGNORED_COMMANDS = _csv(
    os.getenv("IGNORED_COMMANDS", "getquote,note,quote,time,seen,botsnack")
)

RELOAD_USERS = _csv(os.getenv("RELOAD_USERS"))

HISTORY_SIZE = int(os.getenv("HISTORY_SIZE", "15"))

# === Issue tracker ===

JIRA_HOST = os.getenv("JIRA_HOST", "https://support.zabbix.com").rstrip("/")
JIRA_BROWSE_URL = os.getenv("JIRA_BROWSE_URL", f"{JIRA_HOST}/browse").rstrip("/")
JIRA_FETCH_TIMEOUT_SECONDS = float(os.getenv("JIRA_FETCH_TIMEOUT_SECONDS", "10"))

# Empty allow-list forwards issues of every project
JIRA_PROJECTS = tuple(p.upper() for p in _csv(os.getenv("JIRA_PROJECTS")))

ISSUE_KEY_MAX_DIGITS = int(os.getenv("ISSUE_KEY_MAX_DIGITS", "5"))

# === Data tables ===

DATA_DIR = os.getenv("DATA_DIR", "data")
TOPIC_FILE = os.getenv("TOPIC_FILE", os.path.join(DATA_DIR, "topics.json"))
ITEM_KEY_FILE = os.getenv("ITEM_KEY_FILE", os.path.join(DATA_DIR, "item_keys.json"))

# === Webhook receiver ===

WEBHOOK_HOST = os.getenv("WEBHOOK_HOST", "0.0.0.0")
WEBHOOK_PORT = int(os.getenv("WEBHOOK_PORT", "8000"))
WEBHOOK_PATH = os.getenv("WEBHOOK_PATH", "/jira-webhook")
WEBHOOK_SERVER_HEADER = os.getenv("WEBHOOK_SERVER_HEADER", "Jira receiver")


def validate_irc_settings() -> None:
    """
    Validate IRC connection configuration.

    Raises RuntimeError if required values are missing or invalid.
    """
    if not IRC_SERVER:
        raise RuntimeError("IRC_SERVER is not set")

    if not IRC_NICK:
        raise RuntimeError("IRC_NICK is not set")

    if not IRC_CHANNEL or IRC_CHANNEL[0] not in "#&":
        raise RuntimeError(f"IRC_CHANNEL is not a channel name: {IRC_CHANNEL!r}")

    if RECONNECT_MODE not in ("self", "connector"):
        raise RuntimeError(
            f"RECONNECT_MODE must be 'self' or 'connector': {RECONNECT_MODE!r}"
        )

    if len(COMMAND_TRIGGER) != 1:
        raise RuntimeError("COMMAND_TRIGGER must be a single character")


def validate_data_settings() -> None:
    """
    Validate that the topic and item-key tables exist.

    Raises RuntimeError if a table file is missing.
    """
    for path in (TOPIC_FILE, ITEM_KEY_FILE):
        if not os.path.exists(path):
            raise RuntimeError(f"Data file does not exist: {path}")


def validate_tracker_settings() -> None:
    """
    Validate issue tracker configuration.

    Raises RuntimeError if required values are missing or invalid.
    """
    if not JIRA_HOST.startswith(("http://", "https://")):
        raise RuntimeError(f"JIRA_HOST is not an http(s) URL: {JIRA_HOST!r}")

    if not 1 <= ISSUE_KEY_MAX_DIGITS <= 9:
        raise RuntimeError("ISSUE_KEY_MAX_DIGITS must be between 1 and 9")
