"""Product categorizer.

Maps a policy to exactly one of the four categories that drive commission
and revenue logic. Rules are applied in order on the lower-cased
``product_type``:

1. life markers -> vie
2. health markers -> lca
3. "multi" bundles: health sub-product -> lca, else life sub-product -> vie
4. hypothecary markers -> hypo
5. anything else -> non_vie
"""
from typing import Iterable
from brokerage.schemas.ledger import PolicyRecord
from brokerage.schemas.revenue import ProductCategory

LIFE_MARKERS = ("vie", "life", "pilier", "3a", "3b")
HEALTH_MARKERS = ("health", "lamal", "lca", "maladie", "complémentaire")
HYPO_MARKERS = ("hypo", "hypothécaire")

MULTI_PRODUCT_TYPE = "multi"


def _contains_any(text: str, markers: Iterable[str]) -> bool:
    return any(marker in text for marker in markers)


def categorize_policy(policy: PolicyRecord) -> ProductCategory:
    text = (policy.product_type or "").lower()

    if _contains_any(text, LIFE_MARKERS):
        return ProductCategory.VIE
    if _contains_any(text, HEALTH_MARKERS):
        return ProductCategory.LCA

    if text == MULTI_PRODUCT_TYPE and policy.products_data:
        sub_categories = [(p.category or "").lower() for p in policy.products_data]
        # Health wins over life when a bundle carries both
        if any(_contains_any(c, HEALTH_MARKERS) for c in sub_categories):
            return ProductCategory.LCA
        if any(_contains_any(c, LIFE_MARKERS) for c in sub_categories):
            return ProductCategory.VIE

    if _contains_any(text, HYPO_MARKERS):
        return ProductCategory.HYPO
    return ProductCategory.NON_VIE
