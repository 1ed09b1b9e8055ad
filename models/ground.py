"""
Ground model.
Bookable grounds, their mutual-exclusion graph and pricing data access.

Mega_Ground physically covers G1 and G2, so a booking on one of them must
be checked against bookings on the others. The relation lives in a single
table below; adding another overlapping ground is a table edit.
"""

import json
from types import MappingProxyType

from database import get_db
from utils.datetime_helpers import get_now, to_storage
from utils.errors import NotFoundError, ValidationError
from utils.validators import parse_whole_number


# =============================================================================
# RESOURCE GRAPH
# =============================================================================

# Composite ground -> the grounds it physically covers
GROUND_COMPOSITION = {
    'Mega_Ground': ('G1', 'G2'),
}


def _build_conflict_table(composition: dict) -> dict:
    """Symmetric adjacency map derived from the composition table."""
    table = {}
    for composite, parts in composition.items():
        for part in parts:
            table.setdefault(composite, set()).add(part)
            table.setdefault(part, set()).add(composite)
    return {name: tuple(sorted(related)) for name, related in table.items()}


GROUND_CONFLICTS = MappingProxyType(_build_conflict_table(GROUND_COMPOSITION))


def get_related_grounds(name: str) -> tuple:
    """
    Grounds whose bookings must be considered when checking `name`.

    The ground itself is not included; use get_conflict_group() for that.

    Args:
        name: Ground name (e.g. 'G1')

    Returns:
        tuple of ground names (empty for unknown grounds)
    """
    return GROUND_CONFLICTS.get(name, ())


def get_conflict_group(name: str) -> tuple:
    """The ground plus every ground it conflicts with."""
    return (name,) + get_related_grounds(name)


# =============================================================================
# PRICING KEYS
# =============================================================================

PRICING_KEYS = (
    'Weekday_first_half',
    'Weekday_second_half',
    'Weekend_first_half',
    'Weekend_second_half',
)


def _row_to_ground(row) -> dict:
    ground = dict(row)
    ground['pricing'] = json.loads(ground.get('pricing') or '{}')
    return ground


# =============================================================================
# QUERIES
# =============================================================================

def get_all_grounds() -> list:
    """
    Get all grounds ordered for display.

    Returns:
        List of ground dicts with parsed pricing
    """
    db = get_db()
    rows = db.execute('''
        SELECT * FROM turf_grounds
        ORDER BY display_order, name
    ''').fetchall()
    return [_row_to_ground(row) for row in rows]


def get_ground_by_id(ground_id: int) -> dict:
    """Get ground by ID, or None."""
    db = get_db()
    row = db.execute('SELECT * FROM turf_grounds WHERE id = ?', (ground_id,)).fetchone()
    return _row_to_ground(row) if row else None


def get_ground_by_name(name: str) -> dict:
    """Get ground by name, or None."""
    db = get_db()
    row = db.execute('SELECT * FROM turf_grounds WHERE name = ?', (name,)).fetchone()
    return _row_to_ground(row) if row else None


def resolve_ground(ground_ref) -> dict:
    """
    Look a ground up by ID or name.

    Raises:
        NotFoundError: If no ground matches
    """
    ground = None
    if isinstance(ground_ref, int) or (isinstance(ground_ref, str) and ground_ref.isdigit()):
        ground = get_ground_by_id(int(ground_ref))
    elif isinstance(ground_ref, str):
        ground = get_ground_by_name(ground_ref.strip())

    if not ground:
        raise NotFoundError('Ground not found', ground=ground_ref)
    return ground


# =============================================================================
# PRICING UPDATE
# =============================================================================

def update_ground_pricing(ground_id: int, pricing: dict) -> dict:
    """
    Replace a ground's pricing table.

    Args:
        ground_id: Ground ID
        pricing: Mapping of pricing key -> non-negative integer amount

    Returns:
        Updated ground dict

    Raises:
        NotFoundError: If ground doesn't exist
        ValidationError: If a key is unknown or an amount is invalid
    """
    if not isinstance(pricing, dict) or not pricing:
        raise ValidationError('Pricing must be a non-empty object', field='pricing')

    cleaned = {}
    for key, amount in pricing.items():
        if key not in PRICING_KEYS:
            raise ValidationError(f'Unknown pricing key: {key}', field='pricing')
        if isinstance(amount, bool) or not isinstance(amount, (int, float)) or amount < 0:
            raise ValidationError(f'Invalid amount for {key}', field='pricing')
        cleaned[key] = parse_whole_number(amount, 'pricing', f'Amount for {key} must be a whole number')

    ground = get_ground_by_id(ground_id)
    if not ground:
        raise NotFoundError('Ground not found', ground=ground_id)

    merged = dict(ground['pricing'])
    merged.update(cleaned)

    with get_db() as conn:
        conn.execute('''
            UPDATE turf_grounds
            SET pricing = ?, updated_at = ?
            WHERE id = ?
        ''', (json.dumps(merged), to_storage(get_now()), ground_id))

    return get_ground_by_id(ground_id)
