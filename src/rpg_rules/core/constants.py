"""Rules-wide constants for the rpg-rules core.

Numeric balance coefficients do not live here; they belong to the
Tunables tree in ``rpg_rules.engine.tunables``. This module only holds
values that are fixed by the rules contract itself.
"""

from __future__ import annotations

# =============================================================================
# Versioning
# =============================================================================

RULE_VERSION = "rpg-rules.v1.0.0"
"""Version tag stamped on every Tunables value and applied status."""

# =============================================================================
# Random Number Generation
# =============================================================================

UINT32_MASK = 0xFFFFFFFF
"""Mask keeping PRNG state inside 32 bits."""

MULBERRY32_INCREMENT = 0x6D2B79F5
"""Weyl sequence increment of the mulberry32 generator."""

UINT32_RANGE = 4294967296
"""Divisor mapping a 32-bit integer onto [0, 1)."""

# =============================================================================
# Status Effects
# =============================================================================

IMMUNITY_WILDCARD = "all"
"""Granted-immunity entry that blocks every incoming status."""

MIN_TICK_RATE = 1
"""Smallest allowed turn cadence for periodic statuses."""

# =============================================================================
# Simulation
# =============================================================================

DEFAULT_MAX_TURNS = 40
"""Default turn cap for a simulated fight."""

# =============================================================================
# Loot
# =============================================================================

MAX_LOOT_REROLLS = 6
"""Attempts made to replace a duplicate item in a loot batch."""
