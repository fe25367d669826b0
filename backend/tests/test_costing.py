"""Weighted-average purchase cost."""
import pytest

from exceptions import InvalidRestockError
from utils.costing import CostUpdate, weighted_average_cost


class TestWeightedAverageCost:

    def test_blends_equal_batches(self):
        assert weighted_average_cost(10, 1000, 10, 1200) == CostUpdate(quantity=20, unit_cost=1100)

    def test_first_restock_takes_incoming_cost(self):
        assert weighted_average_cost(0, 0, 5, 2000) == CostUpdate(quantity=5, unit_cost=2000)

    def test_rounds_half_up_to_whole_units(self):
        # (1*1000 + 1*1001) / 2 = 1000.5
        assert weighted_average_cost(1, 1000, 1, 1001).unit_cost == 1001
        # (3*1000 + 1*1001) / 4 = 1000.25
        assert weighted_average_cost(3, 1000, 1, 1001).unit_cost == 1000

    def test_result_stays_within_one_unit_of_exact_average(self):
        cases = [(7, 1333, 3, 2500), (120, 4750, 35, 5125), (1, 1, 999, 77777)]
        for q0, c0, qin, cin in cases:
            update = weighted_average_cost(q0, c0, qin, cin)
            exact = (q0 * c0 + qin * cin) / (q0 + qin)
            assert update.quantity == q0 + qin
            assert abs(update.unit_cost - exact) <= 1

    @pytest.mark.parametrize("qin,cin", [(0, 1000), (-3, 1000), (5, 0), (5, -10)])
    def test_rejects_non_positive_batch(self, qin, cin):
        with pytest.raises(InvalidRestockError):
            weighted_average_cost(10, 1000, qin, cin)

    def test_rejects_negative_current_state(self):
        with pytest.raises(InvalidRestockError):
            weighted_average_cost(-1, 1000, 5, 1000)
