import re

# A "<" chunk that closes with ">" is a tag; one that runs into another "<" or
# the end of the text is a literal less-than and stays.
_TAG_OR_STRAY_LESS_THAN = re.compile(r"<[^>]*?((?=<)|>|$)")
_SCRIPT_OR_STYLE = re.compile(r"<(script|style)[^>]*?>.*?</\1>", re.IGNORECASE | re.DOTALL)
_LINE_WHITESPACE = re.compile(r"[\r\n\t ]+")
_PERCENT_OCTET = re.compile(r"%[a-f0-9]{2}", re.IGNORECASE)


def _strip_all_tags(text: str) -> str:
    text = _SCRIPT_OR_STYLE.sub("", text)
    text = _TAG_OR_STRAY_LESS_THAN.sub(lambda m: "" if m.group(0).endswith(">") else m.group(0), text)
    return text.strip()


def _sanitize(value: str, *, keep_newlines: bool) -> str:
    # Output is escaped at render time, so nothing is entity-encoded here.
    text = value.encode("utf-8", "ignore").decode("utf-8")
    if "<" in text:
        text = _strip_all_tags(text)
    if keep_newlines:
        text = text.replace("\r\n", "\n").replace("\r", "\n")
    else:
        text = _LINE_WHITESPACE.sub(" ", text)
    text = text.strip()

    found = False
    while True:
        match = _PERCENT_OCTET.search(text)
        if match is None:
            break
        text = text.replace(match.group(0), "")
        found = True
    if found:
        text = re.sub(r" +", " ", text).strip()
    return text


def sanitize_text_field(value: str) -> str:
    """Collapse operator input to a single line of plain text."""
    return _sanitize(value, keep_newlines=False)


def sanitize_textarea_field(value: str) -> str:
    """Like sanitize_text_field, but line breaks survive."""
    return _sanitize(value, keep_newlines=True)
