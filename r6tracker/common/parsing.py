import re

from bs4 import BeautifulSoup


def clean_text(s: str | None) -> str | None:
    if s is None:
        return None
    s = re.sub(r"\s+", " ", s.strip())
    return s or None


def parse_int(s: str | None) -> int | None:
    """'1 W' -> 1, '1,234' -> 1234; None when no digits are present."""
    if not s:
        return None
    m = re.search(r"-?\d+", s.replace(",", ""))
    return int(m.group(0)) if m else None


def parse_decimal(s: str | None) -> float | None:
    """'45.5%' -> 45.5, '1.23' -> 1.23; None when no number is present."""
    if not s:
        return None
    s = s.replace(" ", "").replace(",", "")
    m = re.search(r"-?\d+(?:\.\d+)?", s)
    return float(m.group(0)) if m else None


def soup_from_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def node_text(node) -> str | None:
    if node is None:
        return None
    return clean_text(node.get_text(" ", strip=True))
