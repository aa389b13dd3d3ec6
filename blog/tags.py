import re

TAG_NAME_MAX_LENGTH = 50

_TAG_SPLIT_RE = re.compile(r"[,\s]+")


def parse_tag_names(raw: str | None) -> list[str]:
    """
    Split a posted tag string on commas and whitespace.

    Empty tokens are dropped, names are lower-cased and de-duplicated
    keeping first-occurrence order: ``"Go, go GO"`` -> ``["go"]``.
    """
    if not raw:
        return []
    names: list[str] = []
    for token in _TAG_SPLIT_RE.split(raw):
        name = token.lower()
        if name and name not in names:
            names.append(name)
    return names
