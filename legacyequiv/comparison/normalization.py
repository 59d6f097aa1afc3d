"""Name and predicate normalization used for alignment.

Names are case-folded with separators stripped, so POLICY-NUMBER,
policy_number and policyNumber all align. Predicates are compared
structurally after token-level normalization; no query equivalence is
inferred.
"""

import re
from typing import List

_SEPARATORS = re.compile(r'[\W_]+', re.UNICODE)

_PREDICATE_TOKEN = re.compile(
    r"""
    (?P<param>[:@][A-Za-z0-9_\-]+|\?)         # bind parameter / host variable
    |(?P<string>'(?:[^']|'')*'|"[^"]*")       # quoted literal
    |(?P<number>\d+(?:\.\d+)?)                # numeric literal
    |(?P<ident>[A-Za-z_][A-Za-z0-9_\-]*(?:\.[A-Za-z_][A-Za-z0-9_\-]*)*)
    |(?P<op><>|!=|<=|>=|=|<|>|\(|\)|,|\+|\*|/|-)
    |(?P<other>\S)
    """,
    re.VERBOSE,
)

# SQL and COBOL spellings of the same comparison
_OPERATOR_ALIASES = {
    "!=": "<>",
}


def normalize_name(name: str) -> str:
    """Case-fold a name and strip separators"""
    if not name:
        return ""
    return _SEPARATORS.sub("", name.casefold())


def predicate_tokens(predicate: str) -> List[str]:
    """Tokenize a join/filter predicate into normalized tokens"""
    tokens = []
    for match in _PREDICATE_TOKEN.finditer(predicate or ""):
        kind = match.lastgroup
        text = match.group(kind)

        if kind == "param":
            # Bind parameter names carry no structure
            tokens.append("?")
        elif kind == "ident":
            tokens.append(".".join(normalize_name(part) for part in text.split(".")))
        elif kind == "op":
            tokens.append(_OPERATOR_ALIASES.get(text, text))
        else:
            tokens.append(text)
    return tokens


def normalize_predicate(predicate: str) -> str:
    """Canonical single-spaced form of a predicate"""
    return " ".join(predicate_tokens(predicate))
