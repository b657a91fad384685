"""vue-ui - reactive buffer widgets driven across a message bridge."""

__version__ = "0.3.0"
__logo__ = "▾"
