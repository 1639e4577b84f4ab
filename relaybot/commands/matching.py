from typing import Iterable, List


def match_prefix(prefix: str, names: Iterable[str], ignore_case: bool = False) -> List[str]:
    """
    Return every name starting with prefix, sorted.

    The prefix is matched literally; an empty prefix matches everything.
    The result depends only on the set of names, never on their order.
    """
    if ignore_case:
        needle = prefix.lower()
        found = {n for n in names if n.lower().startswith(needle)}
    else:
        found = {n for n in names if n.startswith(prefix)}

    return sorted(found)


def candidates(names: Iterable[str]) -> str:
    return ", ".join(names)
