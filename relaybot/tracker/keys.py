import re
from functools import lru_cache
from typing import List


# PROJECT-NUMBER, e.g. ZBX-1234 / ZBXNEXT-42
PROJECT_PART = r"[A-Za-z]{3,7}"

NUMERIC_REFERENCE = re.compile(r"^\d+$")


@lru_cache(maxsize=None)
def issue_key_pattern(max_digits: int) -> re.Pattern:
    """Full-string match for a command argument."""
    return re.compile(rf"^{PROJECT_PART}-\d{{1,{max_digits}}}$")


@lru_cache(maxsize=None)
def issue_key_scanner(max_digits: int) -> re.Pattern:
    """Word-bounded search for keys inside free channel text."""
    return re.compile(rf"\b({PROJECT_PART}-\d{{1,{max_digits}}})\b")


def is_issue_key(text: str, max_digits: int) -> bool:
    return bool(issue_key_pattern(max_digits).match(text))


def find_issue_keys(text: str, max_digits: int) -> List[str]:
    """Return every key in text, upper-cased, in left-to-right order."""
    return [m.upper() for m in issue_key_scanner(max_digits).findall(text or "")]


def project_of(key: str) -> str:
    return key.split("-", 1)[0].upper()
