import re

SEPARATOR = " - "
MAX_LINE_LENGTH = 100
MIN_NAME_LENGTH = 2

_ORDINAL_PREFIX = re.compile(r"^\s*\d+[.)]\s*")


def extract_entity_names(output: str) -> list[str]:
    """Pull "<Role> at <Company>" candidates out of a search step's listing.

    Best effort: only short lines shaped like "1. Role at Company - Platform - URL"
    qualify, so prose paragraphs containing a dash are skipped.
    """
    names = []
    for line in (output or "").splitlines():
        if SEPARATOR not in line or len(line) >= MAX_LINE_LENGTH:
            continue
        head = line.split(SEPARATOR, 1)[0]
        name = _ORDINAL_PREFIX.sub("", head).strip()
        if len(name) > MIN_NAME_LENGTH:
            names.append(name)
    return names
