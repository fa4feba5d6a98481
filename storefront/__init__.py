"""ArtVista storefront backend: cart, checkout, payment and order history."""

__version__ = "1.0.0"
