"""Storefront cart core: guest and authenticated carts kept consistent.

Holds the device-local guest cart, the server-owned cart snapshot, the
one-time merge at login, the read model every UI surface consumes, and the
stock validation that gates checkout.
"""
