"""Recommendation engine for the HavenRec storefront.

This module contains the product similarity scorer, order co-occurrence
index, shopper context readers, candidate strategies, trending fallback and
the hybrid recommender that blends them into ranked product lists.
"""
