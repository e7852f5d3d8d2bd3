"""Biscotto Bakeria storefront backend."""
