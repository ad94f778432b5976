"""Tests for the hybrid recommender.

Covers weighted blending of the context strategies, similar products, the
trending padding and the score breakdown.
"""

import pytest

from src.recommender.config import BROWSING_HISTORY_KEY, CART_KEY, WISHLIST_KEY, EngineConfig
from src.recommender.hybrid import HybridRecommender
from src.recommender.models import Catalog
from src.recommender.trending import trending_products


def ids(products):
    return [p.product_id for p in products]


@pytest.fixture
def recommender():
    return HybridRecommender()


# ===== Initialization =====


def test_hybrid_recommender_default_weights(recommender):
    config = recommender.config

    assert (config.cart_weight, config.wishlist_weight) == (3.0, 2.5)
    assert (config.purchase_weight, config.browsing_weight) == (2.0, 1.5)
    assert (config.collaborative_weight, config.content_weight) == (3.0, 2.0)
    assert (config.context_limit, config.collaborative_limit, config.content_limit) == (8, 4, 6)


def test_engine_config_rejects_negative_weights():
    with pytest.raises(ValueError):
        EngineConfig(cart_weight=-1.0)


# ===== Personalized =====


def test_personalized_blends_cart_and_wishlist(recommender, make_context, store):
    store.set_json(CART_KEY, [{"productId": 1}])
    store.set_json(WISHLIST_KEY, [5])

    result = recommender.personalized(make_context(user_id=99), 12)

    # cart x3: [2, 3, 5, 7, 8]; wishlist x2.5: [6, 7, 1, 2, 8]
    # totals: 2/7/8 -> 5.5, 3/5 -> 3.0, 6/1 -> 2.5; trending has nothing left
    assert ids(result) == [2, 7, 8, 3, 5, 6, 1]


def test_personalized_truncates_to_limit(recommender, make_context, store):
    store.set_json(CART_KEY, [{"productId": 1}])
    store.set_json(WISHLIST_KEY, [5])

    result = recommender.personalized(make_context(user_id=99), 3)

    assert ids(result) == [2, 7, 8]


def test_personalized_pads_with_trending(recommender, make_context, store):
    store.set_json(BROWSING_HISTORY_KEY, [5])

    result = recommender.personalized(make_context(user_id=99), 5)

    # browsing gives [6, 7, 1]; trending fills with 8 and 5
    assert ids(result) == [6, 7, 1, 8, 5]


def test_personalized_fresh_shopper_is_trending(recommender, make_context, catalog):
    result = recommender.personalized(make_context(user_id=99), 12)

    assert ids(result) == ids(trending_products(catalog, 12, []))


def test_personalized_is_deterministic(recommender, make_context, store):
    store.set_json(CART_KEY, [{"productId": 3}])
    store.set_json(BROWSING_HISTORY_KEY, [8, 2])
    context = make_context()

    assert ids(recommender.personalized(context, 12)) == ids(recommender.personalized(context, 12))


def test_personalized_empty_catalog(recommender, make_context, store):
    store.set_json(CART_KEY, [{"productId": 1}])

    assert recommender.personalized(make_context(catalog=Catalog(), orders=[]), 12) == []


def test_personalized_return_scores(recommender, make_context, store):
    store.set_json(CART_KEY, [{"productId": 1}])
    store.set_json(WISHLIST_KEY, [5])

    result, scores = recommender.personalized(make_context(user_id=99), 12, return_scores=True)

    assert scores["method"] == "personalized"
    assert scores["strategy_candidates"]["cart"] == [2, 3, 5, 7, 8]
    assert scores["strategy_candidates"]["purchase_history"] == []
    assert scores["hybrid_scores"][2] == pytest.approx(5.5)
    assert scores["hybrid_scores"][6] == pytest.approx(2.5)
    assert scores["trending_count"] == 0
    assert set(scores["hybrid_scores"]) == set(ids(result))


def test_personalized_custom_weights(make_context, store):
    store.set_json(CART_KEY, [{"productId": 1}])
    store.set_json(WISHLIST_KEY, [5])
    recommender = HybridRecommender(EngineConfig(cart_weight=0.0, wishlist_weight=1.0))

    result = recommender.personalized(make_context(user_id=99), 12)

    # Cart candidates are inserted first at zero, so wishlist ties keep cart order
    assert ids(result) == [2, 7, 8, 6, 1, 3, 5]


# ===== Similar products =====


def test_similar_blends_collaborative_and_content(recommender, make_context):
    result = recommender.similar(make_context(), 1, 8)

    # collaborative x3: [5, 2, 8]; content x2: [2, 3, 5, 7, 8, 6]
    assert ids(result) == [5, 2, 8, 3, 7, 6]


def test_similar_records_view_first(recommender, make_context):
    context = make_context()

    recommender.similar(context, 1, 8)
    recommender.similar(context, "7", 8)

    assert context.browsing_history() == [7, 1]


def test_similar_never_returns_source_product(recommender, make_context, catalog):
    context = make_context()
    for product in catalog:
        result = recommender.similar(context, product.product_id, 8)
        assert product.product_id not in ids(result)
        assert len(ids(result)) == len(set(ids(result)))
        assert all(p.stock > 0 for p in result)


def test_similar_unknown_product_is_trending(recommender, make_context, catalog):
    result = recommender.similar(make_context(), 999, 5)

    assert ids(result) == ids(trending_products(catalog, 5, [999]))


def test_similar_non_numeric_id_is_trending_and_not_recorded(recommender, make_context, catalog):
    context = make_context()

    result = recommender.similar(context, "not-a-product", 4)

    assert ids(result) == ids(trending_products(catalog, 4, []))
    assert context.browsing_history() == []


def test_similar_pads_with_trending(recommender, make_context):
    # Product 4 (sold out) was bought with 3; content neighbors are [1, 2, 3, 7, 6, 8]
    result, scores = recommender.similar(make_context(), 4, 8, return_scores=True)

    assert scores["strategy_candidates"]["collaborative"] == [3]
    assert scores["strategy_candidates"]["content"] == [1, 2, 3, 7, 6, 8]
    assert scores["hybrid_scores"][3] == pytest.approx(5.0)
    assert ids(result) == [3, 1, 2, 7, 6, 8, 5]
    assert scores["trending_count"] == 1
    assert scores["weights"] == {"collaborative": 3.0, "content": 2.0}


def test_similar_limit_truncates(recommender, make_context):
    assert ids(recommender.similar(make_context(), 1, 2)) == [5, 2]
