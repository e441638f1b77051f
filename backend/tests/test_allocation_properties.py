"""
Property tests for the batch cost allocation.

allocate_batch_cost is pure, so it is exercised directly with exact
arithmetic (Fraction) and with Decimal amounts like the service uses.
"""

from decimal import Decimal
from fractions import Fraction

from hypothesis import given, settings
from hypothesis import strategies as st

from eggpack.services.production_service import allocate_batch_cost


quantities = st.fractions(min_value=Fraction(1, 1000), max_value=Fraction(100000), max_denominator=1000)
costs = st.fractions(min_value=Fraction(1, 10000), max_value=Fraction(10 ** 9), max_denominator=10000)

decimal_quantities = st.decimals(min_value=Decimal("0.001"), max_value=Decimal("100000"), places=3)
decimal_costs = st.decimals(min_value=Decimal("0.01"), max_value=Decimal("1000000000"), places=4)


@settings(max_examples=200)
@given(total_cost=costs, qtys=st.lists(quantities, min_size=1, max_size=12))
def test_allocation_conserves_cost_exactly(total_cost, qtys):
    allocations = allocate_batch_cost(total_cost, list(enumerate(qtys)))
    assert sum(a.total_hpp for a in allocations) == total_cost


@settings(max_examples=200)
@given(total_cost=costs, qtys=st.lists(quantities, min_size=1, max_size=12))
def test_every_output_gets_the_same_unit_cost(total_cost, qtys):
    allocations = allocate_batch_cost(total_cost, list(enumerate(qtys)))
    expected = total_cost / sum(qtys)
    assert all(a.hpp_per_unit == expected for a in allocations)


@given(total_cost=costs, qty=quantities, copies=st.integers(min_value=2, max_value=6), other=quantities)
def test_equal_quantities_get_equal_hpp(total_cost, qty, copies, other):
    outputs = [(i, qty) for i in range(copies)] + [(copies, other)]
    allocations = allocate_batch_cost(total_cost, outputs)
    same = {a.hpp_per_unit for a in allocations if a.quantity == qty}
    assert len(same) == 1


@settings(max_examples=200)
@given(total_cost=decimal_costs, qtys=st.lists(decimal_quantities, min_size=1, max_size=12))
def test_decimal_allocation_conserves_within_tolerance(total_cost, qtys):
    allocations = allocate_batch_cost(total_cost, list(enumerate(qtys)))
    allocated = sum(a.total_hpp for a in allocations)
    assert abs(allocated - total_cost) <= total_cost * Decimal("1e-6")


@given(qtys=st.lists(quantities, min_size=1, max_size=5))
def test_zero_cost_allocates_nothing(qtys):
    allocations = allocate_batch_cost(Fraction(0), list(enumerate(qtys)))
    assert all(a.hpp_per_unit is None and a.total_hpp is None for a in allocations)
