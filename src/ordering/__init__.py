"""Ordering bounded context: B2B storefront cart and order submission."""
