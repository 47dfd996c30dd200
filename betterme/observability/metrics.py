"""
Prometheus metrics definitions for betterme.

Metrics are organized by category:
- Progression metrics: completions, experience, level-ups
- Shop metrics: purchases, equips, refusals
- Storage metrics: partially applied completions

Exposing them (e.g. via prometheus_client.start_http_server) is left to
the hosting application.
"""

import logging
from prometheus_client import Counter

logger = logging.getLogger(__name__)

# =============================================================================
# Progression Metrics
# =============================================================================

habit_completions_total = Counter(
    "habit_completions_total",
    "Total habit completions processed",
    ["habit_type"],  # habit_type: good/bad
)

exp_awarded_total = Counter(
    "exp_awarded_total",
    "Absolute experience moved by habit completions",
    ["habit_type"],
)

level_ups_total = Counter(
    "level_ups_total",
    "Total level-up events emitted",
)

# =============================================================================
# Shop Metrics
# =============================================================================

shop_actions_total = Counter(
    "shop_actions_total",
    "Total shop actions",
    ["action", "status"],  # action: purchase/equip/unequip, status: success/refused
)

# =============================================================================
# Storage Metrics
# =============================================================================

partial_updates_total = Counter(
    "partial_updates_total",
    "Habit completions left partially applied after a storage failure",
    ["failed_step"],
)
