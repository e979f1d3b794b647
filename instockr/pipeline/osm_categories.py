"""OSM tag catalog used to pick which points of interest to query."""

import re
from typing import Dict, List, Optional, Tuple

# Natural-language descriptions embedded for similarity ranking.
CATEGORY_DESCRIPTIONS: Dict[str, str] = {
    "shop=mobile_phone": "mobile phones, smartphones, cell phones, iPhone, Android devices, phone accessories",
    "shop=electronics": "electronic devices, gadgets, consumer electronics, tech products",
    "shop=computer": "computers, laptops, desktops, PCs, computer accessories, monitors, keyboards",
    "shop=camera": "cameras, photography equipment, lenses, tripods, photo accessories",
    "shop=hifi": "audio equipment, speakers, headphones, amplifiers, stereo systems",
    "shop=video_games": "video games, gaming consoles, PlayStation, Xbox, Nintendo, PC games",
    "shop=hardware": "tools, screws, nails, bolts, building supplies, DIY materials",
    "shop=doityourself": "DIY supplies, home improvement, building materials, power tools",
    "shop=paint": "paint, brushes, painting supplies, wall coverings, varnish",
    "amenity=pharmacy": "medicine, drugs, prescriptions, medical supplies, health products",
    "shop=chemist": "over-the-counter medicine, health products, vitamins, first aid",
    "shop=books": "books, literature, textbooks, magazines, reading materials",
    "shop=stationery": "pens, pencils, paper, notebooks, office supplies, school supplies",
    "shop=clothes": "clothing, apparel, fashion, shirts, pants, dresses, garments",
    "shop=shoes": "footwear, shoes, boots, sneakers, sandals, slippers",
    "shop=supermarket": "groceries, food, daily necessities, household items",
    "shop=convenience": "convenience store, snacks, drinks, quick shopping",
    "shop=sports": "sporting goods, fitness equipment, athletic wear, sports accessories",
    "shop=car": "automobiles, vehicles, cars, automotive sales",
    "shop=cosmetics": "makeup, beauty products, skincare, cosmetic items",
    "shop=furniture": "furniture, home furnishing, chairs, tables, sofas, beds",
    "shop=toys": "toys, children's games, educational toys, playthings",
    "shop=department_store": "large retail store, multiple departments, general merchandise",
}

# Checked in order; first rule with a matching substring wins. English terms
# always apply, the other languages only where the location calls for them.
KEYWORD_RULES: Tuple[Tuple[List[str], Dict[str, Tuple[str, ...]]], ...] = (
    (
        ["shop=mobile_phone", "shop=electronics"],
        {"en": ("phone", "smartphone", "iphone"), "it": ("cellulare", "telefonino"), "de": ("handy",)},
    ),
    (
        ["shop=computer", "shop=electronics"],
        {"en": ("computer", "laptop"), "it": ("portatile",), "de": ("rechner",)},
    ),
    (
        ["shop=hardware", "shop=doityourself"],
        {"en": ("tool", "hammer", "tape"), "it": ("cacciavite", "martello"), "de": ("werkzeug", "schraubenzieher")},
    ),
    (
        ["amenity=pharmacy", "shop=chemist"],
        {"en": ("medicine", "aspirin"), "it": ("farmaco", "aspirina"), "de": ("medikament", "tabletten")},
    ),
    (
        ["shop=books", "shop=stationery"],
        {"en": ("book",), "it": ("libro",), "de": ("buch",)},
    ),
    (
        ["shop=clothes", "shop=fashion"],
        {"en": ("clothes", "shirt"), "it": ("vestiti", "camicia"), "de": ("kleidung", "hemd")},
    ),
    (
        ["shop=supermarket", "shop=convenience"],
        {"en": ("food", "grocery"), "it": ("cibo", "alimentari"), "de": ("lebensmittel",)},
    ),
    (
        ["shop=furniture", "shop=bed"],
        {"en": ("mattress",), "it": ("materasso",), "de": ("matratze",)},
    ),
)

BASE_LANGUAGE = "en"

# Place names that pin a location to one language; matched as whole words.
LOCALE_HINTS: Dict[str, Tuple[str, ...]] = {
    "it": (
        "italy", "italia", "milano", "milan", "roma", "rome", "torino", "turin",
        "napoli", "naples", "firenze", "florence", "bologna", "venezia", "venice", "genova",
    ),
    "de": (
        "germany", "deutschland", "berlin", "münchen", "munich", "hamburg", "frankfurt",
        "köln", "cologne", "stuttgart", "düsseldorf",
    ),
}

DEFAULT_CATEGORIES: List[str] = ["shop=department_store", "shop=general"]


def locale_for(location: Optional[str]) -> Optional[str]:
    """Language implied by a free-text location, or None when it names no known place."""
    words = set(re.findall(r"\w+", (location or "").lower()))
    for locale, hints in LOCALE_HINTS.items():
        if words.intersection(hints):
            return locale
    return None


def keyword_categories(normalized_name: str, locale: Optional[str] = None) -> List[str]:
    for categories, keywords_by_language in KEYWORD_RULES:
        if locale in keywords_by_language:
            languages = {BASE_LANGUAGE, locale}
        else:
            languages = set(keywords_by_language)
        keywords = [keyword for language in languages for keyword in keywords_by_language.get(language, ())]
        if any(keyword in normalized_name for keyword in keywords):
            return list(categories)
    return []
