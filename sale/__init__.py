"""
Astro Sale - Sale & Reveal Engine

Fixed-supply token sale with a time-boxed public window, placeholder-to-revealed
metadata, permanent metadata freeze, default royalties and fund withdrawal.

Import the engine from `sale.engine`; this package module stays free of
imports so collaborator packages can depend on `sale.access` and
`sale.exceptions`.
"""

__version__ = "1.0.0"
