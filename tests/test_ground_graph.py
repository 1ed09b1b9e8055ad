"""
Tests for the ground mutual-exclusion graph and ground data access.
"""

import pytest

from models.ground import (
    GROUND_CONFLICTS, get_related_grounds, get_conflict_group, _build_conflict_table
)


class TestGroundGraph:
    """Mutual-exclusion relation between grounds."""

    def test_mega_relates_to_both_individual_grounds(self):
        assert set(get_related_grounds('Mega_Ground')) == {'G1', 'G2'}

    def test_individual_grounds_relate_only_to_mega(self):
        assert get_related_grounds('G1') == ('Mega_Ground',)
        assert get_related_grounds('G2') == ('Mega_Ground',)

    def test_individual_grounds_do_not_conflict(self):
        assert 'G2' not in get_related_grounds('G1')
        assert 'G1' not in get_related_grounds('G2')

    def test_relation_is_symmetric(self):
        for name, related in GROUND_CONFLICTS.items():
            for other in related:
                assert name in GROUND_CONFLICTS[other]

    def test_ground_is_not_related_to_itself(self):
        for name in ('G1', 'G2', 'Mega_Ground'):
            assert name not in get_related_grounds(name)

    def test_conflict_group_includes_ground(self):
        assert get_conflict_group('G1') == ('G1', 'Mega_Ground')
        assert set(get_conflict_group('Mega_Ground')) == {'Mega_Ground', 'G1', 'G2'}

    def test_unknown_ground_relates_to_nothing(self):
        assert get_related_grounds('G9') == ()
        assert get_conflict_group('G9') == ('G9',)

    def test_adding_a_composite_is_a_table_edit(self):
        table = _build_conflict_table({'Mega_Ground': ('G1', 'G2'), 'Half_Field': ('G2',)})
        assert set(table['G2']) == {'Mega_Ground', 'Half_Field'}
        assert table['Half_Field'] == ('G2',)
        assert table['G1'] == ('Mega_Ground',)

    def test_graph_is_read_only(self):
        with pytest.raises(TypeError):
            GROUND_CONFLICTS['G3'] = ()


class TestGroundQueries:
    """Ground reads and pricing edits."""

    def test_seeded_grounds(self, app):
        from models.ground import get_all_grounds

        names = [ground['name'] for ground in get_all_grounds()]
        assert names == ['G1', 'G2', 'Mega_Ground']

    def test_seeded_pricing(self, grounds):
        assert grounds['G1']['pricing'] == {
            'Weekday_first_half': 1000, 'Weekday_second_half': 1200,
            'Weekend_first_half': 1500, 'Weekend_second_half': 1800
        }
        assert grounds['Mega_Ground']['pricing']['Weekend_second_half'] == 3400

    def test_resolve_by_id_or_name(self, grounds):
        from models.ground import resolve_ground

        assert resolve_ground('G2')['id'] == grounds['G2']['id']
        assert resolve_ground(grounds['G2']['id'])['name'] == 'G2'
        assert resolve_ground(str(grounds['G2']['id']))['name'] == 'G2'

    def test_resolve_unknown_raises(self, app):
        from models.ground import resolve_ground
        from utils.errors import NotFoundError

        with pytest.raises(NotFoundError):
            resolve_ground('Nowhere')

    def test_update_pricing_merges_keys(self, grounds):
        from models.ground import update_ground_pricing

        updated = update_ground_pricing(grounds['G1']['id'], {'Weekday_first_half': 900})
        assert updated['pricing']['Weekday_first_half'] == 900
        assert updated['pricing']['Weekend_second_half'] == 1800

    def test_update_pricing_rejects_unknown_key(self, grounds):
        from models.ground import update_ground_pricing
        from utils.errors import ValidationError

        with pytest.raises(ValidationError):
            update_ground_pricing(grounds['G1']['id'], {'Holiday': 5000})

    def test_update_pricing_rejects_negative_amount(self, grounds):
        from models.ground import update_ground_pricing
        from utils.errors import ValidationError

        with pytest.raises(ValidationError):
            update_ground_pricing(grounds['G1']['id'], {'Weekday_first_half': -1})

    @pytest.mark.parametrize('amount', [900.5, True, '900'])
    def test_update_pricing_rejects_non_whole_amount(self, grounds, amount):
        from models.ground import update_ground_pricing
        from utils.errors import ValidationError

        with pytest.raises(ValidationError) as exc:
            update_ground_pricing(grounds['G1']['id'], {'Weekday_first_half': amount})
        assert exc.value.field == 'pricing'

    def test_update_pricing_accepts_integral_float(self, grounds):
        from models.ground import update_ground_pricing

        updated = update_ground_pricing(grounds['G1']['id'], {'Weekday_first_half': 900.0})
        assert updated['pricing']['Weekday_first_half'] == 900

    def test_update_pricing_unknown_ground(self, app):
        from models.ground import update_ground_pricing
        from utils.errors import NotFoundError

        with pytest.raises(NotFoundError):
            update_ground_pricing(999, {'Weekday_first_half': 100})
