#!/usr/bin/env python3
"""
Fulfillment Desk — CLI entry point.

Usage examples:
  python main.py init                               # Seed data/ with sample data
  python main.py invoices                           # List invoices and progress
  python main.py invoices --status ASSIGNED
  python main.py summary INV-003                    # Per-line completeness
  python main.py assign INV-001 1 MAIN_HQ -s SN-1 -s SN-2
  python main.py assign INV-001 2 FIELD_REP --rep rep1 -s A -s B -s C
  python main.py assign INV-003 7 OUTSOURCE --po PO-1705123456
  python main.py submit INV-001                     # AWAITING_FULFILLMENT -> ASSIGNED
  python main.py approve INV-001                    # ASSIGNED -> DISPATCHED
  python main.py reject INV-001                     # ASSIGNED -> AWAITING_FULFILLMENT
  python main.py complete INV-001                   # DISPATCHED -> COMPLETED
  python main.py outsourced                         # Purchase orders and balances
  python main.py pay PO-1705123458 6000 RBK9999999  # Log a supplier payment
"""
import logging
import sys
from datetime import date
from pathlib import Path

import click

from bootstrap import ensure_data_files
from config import Config
from fulfillment import assignment, reconciler, workflow
from fulfillment.evaluator import is_complete, missing_requirements, summarize
from fulfillment.exceptions import FulfillmentError
from fulfillment.store import FulfillmentStore
from models.invoice import ALL_SOURCES, ALL_STATUSES, SOURCE_LABELS


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )


def _config(ctx: click.Context) -> Config:
    data_dir = ctx.obj.get("data_dir")
    return Config(data_dir=Path(data_dir)) if data_dir else Config()


def _store(ctx: click.Context) -> FulfillmentStore:
    return FulfillmentStore.from_config(_config(ctx))


def _fail(exc: Exception) -> None:
    click.echo(f"✗ {exc}", err=True)
    sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--data-dir", default=None, type=click.Path(file_okay=False),
              help="Directory holding invoices.json, purchase_orders.json, field_reps.csv")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, data_dir: str | None) -> None:
    """Fulfillment Desk — assign invoice lines, approve dispatch, pay suppliers."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["data_dir"] = data_dir
    _setup_logging(verbose)


# --------------------------------------------------------------------
# init command
# --------------------------------------------------------------------

@cli.command()
@click.pass_context
def init(ctx: click.Context) -> None:
    """Create the data directory and restore any missing sample files."""
    config = _config(ctx)
    restored = ensure_data_files(config)
    if restored:
        for name in restored:
            click.echo(f"  + {name}")
    else:
        click.echo("  Data files already present.")
    click.echo(f"\n  Data directory: {config.data_dir}")


# --------------------------------------------------------------------
# invoice commands
# --------------------------------------------------------------------

@cli.command()
@click.option("--status", type=click.Choice(ALL_STATUSES), default=None, help="Filter by status")
@click.pass_context
def invoices(ctx: click.Context, status: str | None) -> None:
    """List invoices with their assignment progress."""
    store = _store(ctx)
    config = _config(ctx)
    rows = store.list_invoices(status=status)
    if not rows:
        click.echo("No invoices found.")
        return
    click.echo()
    for inv in rows:
        s = summarize(inv.line_items)
        click.echo(
            f"  {inv.invoice_id:<10} {inv.status.replace('_', ' '):<22} "
            f"{inv.customer_name:<22} {reconciler.format_amount(inv.total_amount, config.currency):>16}  "
            f"{s.complete}/{s.total_items} ready"
        )
    click.echo()


@cli.command()
@click.argument("invoice_id")
@click.pass_context
def summary(ctx: click.Context, invoice_id: str) -> None:
    """Show per-line completeness for INVOICE_ID."""
    try:
        inv = _store(ctx).get_invoice(invoice_id)
    except FulfillmentError as e:
        _fail(e)
        return

    s = summarize(inv.line_items)
    click.echo()
    click.echo(f"  Invoice:   {inv.invoice_id}  ({inv.status.replace('_', ' ')})")
    click.echo(f"  Customer:  {inv.customer_name}")
    click.echo(f"  Progress:  {s.complete} of {s.total_items} items ready for dispatch "
               f"({s.completion_percent:.0f}%)")
    click.echo(f"  Sources:   Main HQ {s.main_hq} · Nyamira {s.nyamira} · "
               f"Field Rep {s.field_rep} · Outsourced {s.outsource} · Unassigned {s.unassigned}")
    click.echo()
    for li in inv.line_items:
        label = SOURCE_LABELS.get(li.fulfillment_source or "", "Not assigned")
        if is_complete(li):
            click.echo(f"    ✓ [{li.id}] {li.product_name} ×{li.quantity}  {label}")
        else:
            reasons = "; ".join(missing_requirements(li))
            click.echo(f"    ⚠ [{li.id}] {li.product_name} ×{li.quantity}  {label} — {reasons}")
    click.echo()


@cli.command()
@click.argument("invoice_id")
@click.argument("item_id")
@click.argument("source", type=click.Choice(ALL_SOURCES, case_sensitive=False))
@click.option("--serial", "-s", "serials", multiple=True, help="Serial number (repeatable)")
@click.option("--rep", default=None, help="Field rep id (FIELD_REP only)")
@click.option("--po", "po_id", default=None, help="Purchase order id (OUTSOURCE only)")
@click.pass_context
def assign(
    ctx: click.Context,
    invoice_id: str,
    item_id: str,
    source: str,
    serials: tuple[str, ...],
    rep: str | None,
    po_id: str | None,
) -> None:
    """Assign line ITEM_ID of INVOICE_ID to a fulfillment SOURCE."""
    source = source.upper()
    store = _store(ctx)
    try:
        def _apply(li):
            li = assignment.choose_source(li, source)
            if rep is not None:
                li = assignment.assign_rep(li, rep, roster=store.field_reps)
            if serials:
                li = assignment.set_serial_numbers(li, serials)
            if po_id is not None:
                store.get_purchase_order(po_id)
                li = assignment.attach_purchase_order(li, po_id)
            return li

        def _edit(inv):
            workflow.ensure_editable(inv)
            return assignment.update_line_item(inv, item_id, _apply)

        inv = store.update_invoice(invoice_id, _edit)
    except FulfillmentError as e:
        _fail(e)
        return

    li = inv.get_line_item(item_id)
    if is_complete(li):
        click.echo(f"✓ Line {item_id} assigned to {SOURCE_LABELS[source]} — ready for dispatch")
    else:
        click.echo(f"⚠ Line {item_id} assigned to {SOURCE_LABELS[source]} — "
                   f"{'; '.join(missing_requirements(li))}")


def _transition(ctx: click.Context, invoice_id: str, move) -> None:
    store = _store(ctx)
    try:
        inv = store.update_invoice(invoice_id, move)
    except FulfillmentError as e:
        _fail(e)
        return
    click.echo(f"✓ {inv.invoice_id} is now {inv.status.replace('_', ' ')}")


@cli.command()
@click.argument("invoice_id")
@click.pass_context
def submit(ctx: click.Context, invoice_id: str) -> None:
    """Submit a fully assigned invoice for dispatch approval."""
    _transition(ctx, invoice_id, workflow.submit_assignment)


@cli.command()
@click.argument("invoice_id")
@click.pass_context
def approve(ctx: click.Context, invoice_id: str) -> None:
    """Approve an assigned invoice for dispatch."""
    _transition(ctx, invoice_id, workflow.approve_dispatch)


@cli.command()
@click.argument("invoice_id")
@click.pass_context
def reject(ctx: click.Context, invoice_id: str) -> None:
    """Reject an assignment and send the invoice back for fulfillment."""
    _transition(ctx, invoice_id, workflow.reject_dispatch)


@cli.command()
@click.argument("invoice_id")
@click.pass_context
def complete(ctx: click.Context, invoice_id: str) -> None:
    """Mark a dispatched invoice as completed."""
    _transition(ctx, invoice_id, workflow.mark_completed)


# --------------------------------------------------------------------
# purchase order commands
# --------------------------------------------------------------------

@cli.command()
@click.pass_context
def outsourced(ctx: click.Context) -> None:
    """List purchase orders with paid / outstanding balances and profit."""
    config = _config(ctx)
    store = _store(ctx)
    pos = store.list_purchase_orders()
    fmt = lambda amount: reconciler.format_amount(amount, config.currency)  # noqa: E731

    click.echo()
    for po in pos:
        click.echo(
            f"  {po.po_id:<16} {po.payment_status:<8} {po.supplier_name:<22} "
            f"paid {fmt(reconciler.total_paid(po)):>14}  "
            f"outstanding {fmt(reconciler.outstanding(po)):>14}  "
            f"profit {fmt(reconciler.profit(po))} ({reconciler.profit_percent(po):.1f}%)"
        )

    hub = reconciler.summarize_purchase_orders(pos)
    click.echo()
    click.echo(f"  Orders: {hub.total_orders}   Unpaid: {hub.unpaid}   "
               f"Partial: {hub.partial}   Paid: {hub.paid}")
    click.echo(f"  Outstanding to suppliers: {fmt(hub.total_outstanding)}")
    if hub.overpaid_po_ids:
        click.echo(f"  ✗ Over-paid: {', '.join(hub.overpaid_po_ids)}", err=True)
    click.echo()


@cli.command()
@click.argument("po_id")
@click.argument("amount")
@click.argument("reference")
@click.option("--proof", default=None, help="Stored proof-of-payment reference")
@click.option("--date", "payment_date", default=None, type=click.DateTime(formats=["%Y-%m-%d"]),
              help="Payment date (default: today)")
@click.pass_context
def pay(
    ctx: click.Context,
    po_id: str,
    amount: str,
    reference: str,
    proof: str | None,
    payment_date,
) -> None:
    """Log a supplier payment of AMOUNT against PO_ID."""
    config = _config(ctx)
    store = _store(ctx)
    try:
        po = store.update_purchase_order(po_id, lambda current: reconciler.record_payment(
            current, amount, reference,
            proof_ref=proof,
            payment_date=payment_date.date() if payment_date else date.today(),
            currency=config.currency,
        ))
    except FulfillmentError as e:
        _fail(e)
        return

    click.echo(f"✓ Payment recorded against {po.po_id}")
    click.echo(f"  Total paid:   {reconciler.format_amount(reconciler.total_paid(po), config.currency)}")
    click.echo(f"  Outstanding:  {reconciler.format_amount(reconciler.outstanding(po), config.currency)}")
    click.echo(f"  Status:       {po.payment_status}")


if __name__ == "__main__":
    cli()
