from dataclasses import replace
from decimal import Decimal

from app.services.credit_reconcile import aggregate_visits
from app.services.credit_statement import StatementMode, build_statement, ledger_payments


def test_sale_statement_running_balance(make_sale):
    # handed over out of order on purpose
    sales = [
        make_sale(3, 300, method="CREDIT", hours=3),
        make_sale(1, 200, method="CASH", hours=1),
        make_sale(2, 500, method="CREDIT", hours=2),
    ]

    st = build_statement(sales)

    assert [e.sale_id for e in st.entries] == [1, 2, 3]
    assert [e.running_balance for e in st.entries] == [
        Decimal("0.00"), Decimal("500.00"), Decimal("800.00")
    ]
    assert [e.debit for e in st.entries] == [Decimal("200.00"), Decimal("0.00"), Decimal("0.00")]
    assert st.totals.debit == Decimal("200.00")
    assert st.totals.credit == Decimal("800.00")
    assert st.totals.running_balance == Decimal("800.00")


def test_statement_closes_on_ledger_credit_total(make_sale):
    sales = [
        make_sale(1, "120.25", visit_id="IH25-4", method="CREDIT"),
        make_sale(2, "80.00", visit_id="IH25-4", method="CARD"),
        make_sale(3, "19.75", visit_id="IH25-4", method="CREDIT"),
    ]

    (led, ) = aggregate_visits(sales)
    st = build_statement(sales)

    assert st.totals.running_balance == led.credit_total == Decimal("140.00")


def test_collections_view_columns(make_sale):
    sales = [
        make_sale(1, 200, method="CASH", discount="10"),
        make_sale(2, 500, method="CREDIT", discount="25.50"),
    ]

    st = build_statement(sales, StatementMode.PAYMENT)

    assert st.mode is StatementMode.PAYMENT
    first, second = st.entries
    assert (first.paid_amt, first.discount, first.balance_contribution) == (
        Decimal("200.00"), Decimal("10.00"), Decimal("0.00"))
    assert (second.paid_amt, second.discount, second.balance_contribution) == (
        Decimal("0.00"), Decimal("25.50"), Decimal("500.00"))
    assert st.totals.discount == Decimal("35.50")


def test_long_statement_has_no_float_drift(make_sale):
    sales = [make_sale(i, "0.10", method="CREDIT") for i in range(1, 301)]

    st = build_statement(sales)

    assert st.totals.running_balance == Decimal("30.00")
    assert st.entries[-1].running_balance == Decimal("30.00")


def test_empty_statement(make_sale):
    st = build_statement([])

    assert st.entries == ()
    assert st.totals.running_balance == Decimal("0.00")


def test_bill_reference_prefers_bill_number(make_sale):
    sale = replace(make_sale(1, 100), bill_number="PH-0001")
    plain = make_sale(2, 50)

    refs = [e.bill_reference for e in build_statement([sale, plain]).entries]

    assert refs == ["PH-0001", "#2"]


def test_payment_sub_ledger_newest_first(make_payment):
    rows = [
        make_payment("a", 100, hours=1),
        make_payment("b", 50, hours=9),
        make_payment("c", 25, hours=4),
    ]

    assert [p.id for p in ledger_payments(rows)] == ["b", "c", "a"]
