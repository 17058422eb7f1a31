"""Tests for spread_check.predicates: factories, composition, and filtering."""

from __future__ import annotations

import itertools

from spread_check.constants import KIND_CLAIM, KIND_POD
from spread_check.models import ResourceCollection
from spread_check.predicates import (
    all_of,
    any_of,
    contains_name,
    filter_collection,
    has_label,
    in_phase,
    is_bound,
    is_running,
    negate,
)
from tests.conftest import collection, make_record


def _claims() -> ResourceCollection:
    return collection(
        KIND_CLAIM,
        make_record(KIND_CLAIM, "busybox1-busybox1-0", phase="Bound", labels={"app": "busybox1"}),
        make_record(KIND_CLAIM, "busybox1-busybox1-1", phase="Pending", labels={"app": "busybox1"}),
        make_record(KIND_CLAIM, "data-other-0", phase="Bound", labels={"app": "other"}),
        make_record(KIND_CLAIM, "busybox1-busybox1-2", phase="Bound"),
        make_record(KIND_CLAIM, "scratch", phase="Lost", labels={"tier": "cache"}),
    )


class TestPhasePredicates:
    def test_is_bound(self) -> None:
        assert is_bound()(make_record(KIND_CLAIM, "c", phase="Bound"))
        assert not is_bound()(make_record(KIND_CLAIM, "c", phase="Pending"))
        assert not is_bound()(make_record(KIND_CLAIM, "c"))

    def test_is_running(self) -> None:
        assert is_running()(make_record(KIND_POD, "p", phase="Running"))
        assert not is_running()(make_record(KIND_POD, "p", phase="Succeeded"))

    def test_in_phase_multiple(self) -> None:
        pred = in_phase("Pending", "Lost")
        assert pred(make_record(KIND_CLAIM, "c", phase="Lost"))
        assert not pred(make_record(KIND_CLAIM, "c", phase="Bound"))


class TestNameAndLabelPredicates:
    def test_contains_name(self) -> None:
        pred = contains_name("busybox1")
        assert pred(make_record(KIND_CLAIM, "busybox1-busybox1-0"))
        assert not pred(make_record(KIND_CLAIM, "busybox2-0"))

    def test_has_label_key_only(self) -> None:
        pred = has_label("app")
        assert pred(make_record(KIND_POD, "p", labels={"app": "x"}))
        assert not pred(make_record(KIND_POD, "p"))

    def test_has_label_value(self) -> None:
        pred = has_label("app", "busybox1")
        assert pred(make_record(KIND_POD, "p", labels={"app": "busybox1"}))
        assert not pred(make_record(KIND_POD, "p", labels={"app": "other"}))


class TestCombinators:
    def test_all_of_empty_is_true(self) -> None:
        assert all_of()(make_record(KIND_POD, "p"))

    def test_any_of_empty_is_false(self) -> None:
        assert not any_of()(make_record(KIND_POD, "p"))

    def test_any_of(self) -> None:
        pred = any_of(is_bound(), contains_name("scratch"))
        assert pred(make_record(KIND_CLAIM, "scratch", phase="Lost"))
        assert pred(make_record(KIND_CLAIM, "c", phase="Bound"))
        assert not pred(make_record(KIND_CLAIM, "c", phase="Lost"))

    def test_negate(self) -> None:
        assert negate(is_bound())(make_record(KIND_CLAIM, "c", phase="Pending"))
        assert not negate(is_bound())(make_record(KIND_CLAIM, "c", phase="Bound"))


class TestFilterCollection:
    def test_keeps_order_and_kind(self) -> None:
        result = filter_collection(_claims(), is_bound())
        assert result.kind == KIND_CLAIM
        assert result.names() == ["busybox1-busybox1-0", "data-other-0", "busybox1-busybox1-2"]

    def test_does_not_modify_input(self) -> None:
        claims = _claims()
        filter_collection(claims, is_bound())
        assert len(claims) == 5

    def test_no_predicates_keeps_everything(self) -> None:
        assert filter_collection(_claims()).names() == _claims().names()

    def test_multiple_predicates_are_anded(self) -> None:
        result = filter_collection(_claims(), is_bound(), contains_name("busybox1"))
        assert result.names() == ["busybox1-busybox1-0", "busybox1-busybox1-2"]

    def test_empty_collection(self) -> None:
        assert len(filter_collection(collection(KIND_CLAIM), is_bound())) == 0

    def test_filter_commutes(self) -> None:
        predicates = [
            is_bound(),
            in_phase("Pending", "Lost"),
            contains_name("busybox1"),
            has_label("app"),
            has_label("app", "busybox1"),
            negate(is_bound()),
            any_of(is_bound(), has_label("tier")),
        ]
        claims = _claims()
        for p, q in itertools.product(predicates, repeat=2):
            pq = filter_collection(filter_collection(claims, p), q)
            qp = filter_collection(filter_collection(claims, q), p)
            combined = filter_collection(claims, p, q)
            assert pq.names() == qp.names() == combined.names()
