"""Best-effort parsing of CellarTracker exports and pages.

CellarTracker has no public API for notes or bottle photos, so these helpers
scrape whatever the current markup offers and return empty results rather
than raising when the page layout changes.
"""

import io
import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

import pandas as pd
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

CELLARTRACKER_URL = "https://www.cellartracker.com"

PROFESSIONAL_CRITICS = [
    "Wine Spectator",
    "Robert Parker",
    "Wine Advocate",
    "Jancis Robinson",
    "Decanter",
    "James Suckling",
    "Vinous",
    "Wine Enthusiast",
]

SCORE_PATTERN = re.compile(r"\b(\d{2,3}(?:\.\d{1,2})?)\s*(?:pts?|points?|/100)\b", re.IGNORECASE)
DATE_PATTERN = re.compile(r"\b(\d{1,2}/\d{1,2}/\d{4})\b")
HELPFUL_PROMPT = "Do you find this review helpful"


def looks_like_html(text: str) -> bool:
    head = text.lstrip()[:500].lower()
    return head.startswith("<!doctype html") or "<html" in head


def is_inventory_csv(text: str) -> bool:
    """Cheap sanity check that a response body is the inventory export."""
    return len(text) >= 10 and "," in text and "Wine" in text.splitlines()[0]


def parse_inventory_csv(text: str) -> List[Dict[str, Any]]:
    """Parse the inventory export into one dict per bottle, keeping every value as text."""
    text = text.lstrip("\ufeff")
    frame = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)
    frame.columns = [str(column).strip() for column in frame.columns]
    records = frame.to_dict(orient="records")
    logger.info(f"Parsed {len(records)} bottles from inventory export")
    return records


def _absolute(src: str, base_url: str) -> str:
    if src.startswith("http"):
        return src
    return urljoin(base_url + "/", src.lstrip("/"))


def extract_bottle_image(html: str, base_url: str = CELLARTRACKER_URL) -> Optional[str]:
    """Find the bottle photo on a wine page, trying the most specific location first."""
    soup = BeautifulSoup(html, "html.parser")

    photo = soup.find(id="wine_photo")
    if photo is not None:
        img = photo.find("img", src=True)
        if img is not None:
            return _absolute(img["src"], base_url)

    img = soup.find("img", src=re.compile(r"wine_images"))
    if img is not None:
        return _absolute(img["src"], base_url)

    img = soup.find("img", src=re.compile(r"static\.cellartracker\.com"))
    if img is not None:
        return _absolute(img["src"], base_url)

    if photo is not None:
        sourced = photo.find(src=True)
        if sourced is not None:
            return _absolute(sourced["src"], base_url)

    return None


def _note_details(paragraph, note_text: str) -> Dict[str, Optional[str]]:
    container = paragraph.find_parent(["article", "li", "div"])
    author = None
    if container is not None:
        author = container.find(attrs={"itemprop": "author"})
    if author is None:
        author = paragraph.find_previous(attrs={"itemprop": "author"})

    context = container.get_text(" ", strip=True) if container is not None else ""
    context = context.replace(note_text, " ")
    scores = SCORE_PATTERN.findall(context)
    dates = DATE_PATTERN.findall(context)

    return {
        "reviewer": author.get_text(strip=True) if author is not None else None,
        "score": scores[-1] if scores else None,
        "date": dates[-1] if dates else None,
    }


def extract_tasting_notes(html: str, limit: Optional[int] = None) -> List[Dict[str, Optional[str]]]:
    """Community tasting notes with reviewer, score and date where the markup exposes them."""
    soup = BeautifulSoup(html, "html.parser")
    notes: List[Dict[str, Optional[str]]] = []

    for paragraph in soup.find_all("p", attrs={"itemprop": "reviewBody"}):
        note_text = paragraph.get_text(" ", strip=True)
        if len(note_text) <= 2:
            continue
        notes.append({"note": note_text, **_note_details(paragraph, note_text)})

    if not notes:
        for paragraph in soup.find_all("p", class_=re.compile(r"break_word")):
            note_text = paragraph.get_text(" ", strip=True)
            if len(note_text) > 10 and HELPFUL_PROMPT not in note_text:
                notes.append({"note": note_text, "reviewer": None, "score": None, "date": None})

    return notes[:limit] if limit else notes


def extract_professional_reviews(html: str) -> List[str]:
    """Critic mentions followed by a score, e.g. ``"Wine Spectator 94"``."""
    text = BeautifulSoup(html, "html.parser").get_text(" ", strip=True)
    critics = "|".join(re.escape(name) for name in PROFESSIONAL_CRITICS)
    pattern = re.compile(rf"({critics})\D{{0,80}}?(\d{{2,3}}(?:\+|-)?(?:/100)?)", re.IGNORECASE)

    reviews: List[str] = []
    for critic, score in pattern.findall(text):
        review = f"{critic} {score}"
        if review not in reviews:
            reviews.append(review)
    return reviews


def extract_community_score(html: str) -> Optional[str]:
    """The community average score (e.g. ``"91.4"``) if shown on the page."""
    text = BeautifulSoup(html, "html.parser").get_text(" ", strip=True)
    for label in ("Community", "Average"):
        match = re.search(rf"{label}\D{{0,40}}?(\d{{1,2}}\.\d{{1,2}})", text, re.IGNORECASE)
        if match:
            return match.group(1)
    return None
