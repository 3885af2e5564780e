# butcher_pos/catalog.py
from typing import Dict, List, Optional, Tuple

from rapidfuzz import process, fuzz

from .config import settings
from .schemas.product import Product


def build_product_name_map(products: List[Product]) -> Dict[str, Product]:
    """
    [Product(name="Picaña"), ...] -> {"Picaña": Product, ...}
    Inactive products and blank names are skipped.
    """
    out: Dict[str, Product] = {}
    for p in products:
        name = (p.name or "").strip()
        if name and p.is_active:
            out[name] = p
    return out


def fuzzy_match_product(
    term: str,
    product_map: Dict[str, Product],
    score_cutoff: int = None
) -> Tuple[Optional[Product], float]:
    """
    Best fuzzy match of ``term`` against product names (WRatio).
    Returns (product | None, score).
    """
    if score_cutoff is None:
        score_cutoff = settings.search_score_cutoff
    if not term or not product_map:
        return None, 0.0

    best = process.extractOne(term, list(product_map.keys()), scorer=fuzz.WRatio, score_cutoff=score_cutoff)
    if not best:
        return None, 0.0
    matched_name, score, _ = best
    return product_map.get(matched_name), float(score)


def search_products(
    products: List[Product],
    term: str,
    score_cutoff: int = None,
    limit: int = None
) -> List[Product]:
    """
    Counter search box: substring hits on name/SKU/barcode first, then fuzzy
    name matches above the cutoff.
    """
    if score_cutoff is None:
        score_cutoff = settings.search_score_cutoff
    if limit is None:
        limit = settings.search_limit

    product_map = build_product_name_map(products)
    term = (term or "").strip()
    if not term:
        return list(product_map.values())[:limit]

    needle = term.lower()
    hits: List[Product] = []
    seen = set()
    for p in product_map.values():
        if (
            needle in p.name.lower()
            or needle in p.sku.lower()
            or (p.barcode and needle in p.barcode)
        ):
            hits.append(p)
            seen.add(p.id)

    # Fuzzy fill for typos ("pikaña")
    fuzzy = process.extract(
        term, list(product_map.keys()), scorer=fuzz.WRatio, score_cutoff=score_cutoff, limit=limit
    )
    for name, _score, _ in fuzzy:
        p = product_map[name]
        if p.id not in seen:
            hits.append(p)
            seen.add(p.id)

    return hits[:limit]
