import json
from typing import Dict, List, Optional

from relaybot.commands.matching import match_prefix
from relaybot.logger import get_logger


logger = get_logger("relaybot.tables")

ALIAS_PREFIX = "alias:"


def load_json_table(path: str) -> Dict[str, str]:
    """
    Read a flat JSON object of name -> text.

    Raises RuntimeError when the file is missing or not a JSON object.
    """
    try:
        with open(path, "rb") as f:
            data = json.loads(f.read().decode("utf-8"))
    except OSError as exc:
        raise RuntimeError(f"Can't open {path}") from exc
    except ValueError as exc:
        raise RuntimeError(f"Invalid JSON in {path}") from exc

    if not isinstance(data, dict):
        raise RuntimeError(f"Expected a JSON object in {path}")

    return {str(k): str(v) for k, v in data.items()}


class ItemKeyTable:
    """Item key -> description. Prefix lookups are case-sensitive."""

    def __init__(self, entries: Dict[str, str]):
        self._entries = dict(entries)

    @classmethod
    def from_file(cls, path: str) -> "ItemKeyTable":
        table = cls(load_json_table(path))
        logger.info("Loaded %d item keys from %s", len(table), path)
        return table

    def match(self, prefix: str) -> List[str]:
        return match_prefix(prefix, self._entries)

    def describe(self, key: str) -> str:
        return self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)


class TopicTable:
    """
    Topic name -> short help text, reloadable from its source file.

    A text of the form ``alias:<topic>`` marks the name as an alias; lookups
    report the aliased topic instead.
    """

    def __init__(self, entries: Dict[str, str], path: Optional[str] = None):
        self._entries = dict(entries)
        self.path = path

    @classmethod
    def from_file(cls, path: str) -> "TopicTable":
        table = cls(load_json_table(path), path=path)
        logger.info("Loaded %d topics from %s", len(table), path)
        return table

    def reload(self):
        if not self.path:
            raise RuntimeError("Topic table has no source file")
        self._entries = load_json_table(self.path)
        logger.info("Reloaded %d topics from %s", len(self._entries), self.path)

    def names(self) -> List[str]:
        return sorted(self._entries, key=str.lower)

    def _alias_target(self, name: str) -> Optional[str]:
        text = self._entries.get(name, "")
        if text.startswith(ALIAS_PREFIX) and len(text) > len(ALIAS_PREFIX):
            return text[len(ALIAS_PREFIX):]
        return None

    def match(self, prefix: str) -> List[str]:
        matched = match_prefix(prefix, self._entries, ignore_case=True)
        result = set()

        for name in matched:
            target = self._alias_target(name)
            result.add(target if target else name)

        return sorted(result)

    def describe(self, name: str) -> str:
        return self._entries.get(name, "")

    def __len__(self) -> int:
        return len(self._entries)
