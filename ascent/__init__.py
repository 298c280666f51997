"""
Ascent: progression engine for a gamified athletic training platform.

Converts performance measurements into claimed rank tiers, tiers into XP,
and XP into per-domain levels gated by breakthroughs, plus the peer-review
eligibility rules that sit alongside.
"""

__version__ = "1.0.0"
