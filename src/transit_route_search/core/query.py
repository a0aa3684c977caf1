"""Query parameter handling for route search.

Both entry points return either a usable value or a :class:`FieldError`.
Neither raises for bad caller input, so handlers can branch on the result
type and report every problem in the ``fieldErrors`` shape.
"""

import re
import unicodedata

from .models import FieldError, SearchExpression

DEFAULT_MAX_COUNT = 20
MAX_COUNT_LIMIT = 20

INPUT_REQUIRED = "input parameter is required"
MAX_COUNT_NOT_POSITIVE = "maxCount must be a positive integer"
MAX_COUNT_TOO_LARGE = f"maxCount must not exceed {MAX_COUNT_LIMIT}"

# Characters with meaning inside an FTS5 string literal.
_QUOTE_CHARS = str.maketrans("", "", "\"'")

# Unicode categories replaced by a space: control, format, line/paragraph separators.
_BLANKED_CATEGORIES = frozenset({"Cc", "Cf", "Zl", "Zp"})

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")

# Values outside a signed 64-bit integer are rejected as malformed
_INT64_MAX = 2**63 - 1
_INT64_MAX_DIGITS = len(str(_INT64_MAX))

_WHITESPACE_RE = re.compile(r"\s+")


def sanitize_query_text(text: str) -> str:
    """Make free text safe to hand to the store's text encoding.

    - Normalize to NFC so composed and decomposed forms index alike
    - Drop code points that cannot be encoded as UTF-8 (lone surrogates)
    - Replace control and format characters with spaces
    - Collapse runs of whitespace
    """
    text = unicodedata.normalize("NFC", text)
    text = text.encode("utf-8", errors="ignore").decode("utf-8")
    text = "".join(
        " " if unicodedata.category(ch) in _BLANKED_CATEGORIES else ch for ch in text
    )
    return _WHITESPACE_RE.sub(" ", text).strip()


def build_search_expression(raw: str | None) -> SearchExpression | FieldError:
    """Turn raw rider input into a prefix-match FTS5 expression.

    Every whitespace-delimited token is stripped of quote characters, wrapped
    in double quotes and given a trailing ``*``. Terms are joined with
    ``AND`` so every word has to match. The only operator in the output is
    the one inserted here.

    Args:
        raw: Untrusted search text

    Returns:
        SearchExpression, or FieldError for ``input`` when nothing searchable
        is left
    """
    if raw is None or not raw.strip():
        return FieldError(field="input", message=INPUT_REQUIRED)

    sanitized = sanitize_query_text(raw)

    terms = []
    for token in sanitized.split():
        clean = token.translate(_QUOTE_CHARS).strip()
        if clean:
            terms.append(clean)

    if not terms:
        return FieldError(field="input", message=INPUT_REQUIRED)

    expression = " AND ".join(f'"{term}"*' for term in terms)
    return SearchExpression(expression=expression, terms=terms)


def parse_max_count(raw: str | None) -> int | FieldError:
    """Parse the optional ``maxCount`` parameter.

    Args:
        raw: Parameter value as received, or None when absent

    Returns:
        The result limit in ``[1, MAX_COUNT_LIMIT]``, or FieldError for ``maxCount``
    """
    if raw is None or raw == "":
        return DEFAULT_MAX_COUNT

    # int() would also accept "1_0" and surrounding spaces
    if not _INTEGER_RE.fullmatch(raw):
        return FieldError(field="maxCount", message=MAX_COUNT_NOT_POSITIVE)

    sign = "-" if raw.startswith("-") else ""
    digits = raw.lstrip("+-").lstrip("0") or "0"
    if len(digits) > _INT64_MAX_DIGITS:
        return FieldError(field="maxCount", message=MAX_COUNT_NOT_POSITIVE)

    value = int(sign + digits)
    if value <= 0 or value > _INT64_MAX:
        return FieldError(field="maxCount", message=MAX_COUNT_NOT_POSITIVE)
    if value > MAX_COUNT_LIMIT:
        return FieldError(field="maxCount", message=MAX_COUNT_TOO_LARGE)
    return value
