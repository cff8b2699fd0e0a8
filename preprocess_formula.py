from __future__ import annotations
import re

SUBSCRIPT_DIGITS = str.maketrans("₀₁₂₃₄₅₆₇₈₉", "0123456789")

HYDRATE_DOTS = ("·", "•", "∙", "⋅", "*")

_WS_RE = re.compile(r"\s+")

def _strip_whitespace(text: str) -> str:
    return _WS_RE.sub("", text)

def _normalize_subscripts(text: str) -> str:
    return text.translate(SUBSCRIPT_DIGITS)

def _normalize_hydrate_dots(text: str) -> str:
    for dot in HYDRATE_DOTS:
        text = text.replace(dot, ".")
    return text

def preprocess_formula(text: str) -> str:
    if not text:
        return text
    text = _strip_whitespace(text)
    text = _normalize_subscripts(text)
    text = _normalize_hydrate_dots(text)
    return text

if __name__ == "__main__":
    samples = [
        "CuSO₄·5H₂O", "Na2CO3 * 10H2O", "[Cu(NH3)4]SO4", " Fe <3e+> ",
    ]
    for s in samples:
        print("IN:  ", s)
        print("OUT: ", preprocess_formula(s))
        print("---")
