"""Tests for order planning over sibling sets."""

import pytest

from relohub.content.sequence import coerce_order, plan_compaction, plan_move
from relohub.errors import InvalidOrderError, NotFoundError


def _apply(siblings, pairs):
    result = dict(siblings)
    result.update(dict(pairs))
    return result


class TestCoerceOrder:
    def test_accepts_positive_int(self):
        assert coerce_order(3) == 3

    def test_accepts_integral_float(self):
        assert coerce_order(2.0) == 2

    @pytest.mark.parametrize("value", [0, -1, 1.5, "2", None, True, False, [1]])
    def test_rejects_everything_else(self, value):
        with pytest.raises(InvalidOrderError, match="Invalid order value"):
            coerce_order(value)


class TestPlanMove:
    def test_move_up_shifts_the_gap(self):
        siblings = [("A", 1), ("B", 2), ("C", 3), ("D", 4)]
        pairs = plan_move(siblings, "D", 2)
        assert _apply(siblings, pairs) == {"A": 1, "D": 2, "B": 3, "C": 4}
        # A keeps its slot so it is not rewritten
        assert "A" not in dict(pairs)

    def test_move_down_within_category(self):
        siblings = [("t1", 1), ("t2", 2), ("t3", 3)]
        assert _apply(siblings, plan_move(siblings, "t1", 3)) == {"t2": 1, "t3": 2, "t1": 3}

    def test_same_position_is_noop(self):
        siblings = [("a", 1), ("b", 2), ("c", 3)]
        assert plan_move(siblings, "b", 2) == []

    def test_result_is_a_permutation(self):
        siblings = [(f"id{i}", i) for i in range(1, 8)]
        for item_id, _ in siblings:
            for target in range(1, 8):
                orders = _apply(siblings, plan_move(siblings, item_id, target))
                assert sorted(orders.values()) == list(range(1, 8))
                assert orders[item_id] == target

    def test_target_beyond_size_rejected(self):
        with pytest.raises(InvalidOrderError):
            plan_move([("a", 1), ("b", 2)], "a", 3)

    def test_unknown_item(self):
        with pytest.raises(NotFoundError):
            plan_move([("a", 1)], "zzz", 1)

    def test_invalid_order_checked_before_membership(self):
        with pytest.raises(InvalidOrderError):
            plan_move([("a", 1)], "zzz", 0)

    def test_repairs_gaps_while_moving(self):
        siblings = [("a", 1), ("b", 4), ("c", 9)]
        assert _apply(siblings, plan_move(siblings, "c", 1)) == {"c": 1, "a": 2, "b": 3}


class TestPlanCompaction:
    def test_closes_gaps_keeping_relative_order(self):
        siblings = [("a", 1), ("c", 5), ("b", 3)]
        assert dict(plan_compaction(siblings)) == {"b": 2, "c": 3}

    def test_dense_set_needs_no_writes(self):
        assert plan_compaction([("a", 1), ("b", 2)]) == []
