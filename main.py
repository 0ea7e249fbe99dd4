#!/usr/bin/env python3
"""
Purchasing — CLI entry point.

Usage examples:
  python main.py check                                  # Verify store and ledger setup
  python main.py validate-id 001-1234567-3              # Check a fiscal identifier
  python main.py format-id 130112345                    # → 130-11234-5

  python main.py create-order --article A1 --supplier S1 --quantity 10 --unit-cost 250.50
  python main.py create-order ... --state Approved      # Create and post to the ledger
  python main.py update-order <id> --state Approved     # Approve (posts DB/CR pair)
  python main.py post-order <id>                        # Retry a failed posting
  python main.py delete-order <id>
  python main.py orders --state Approved
  python main.py entries                                # List ledger entries

  python main.py add-supplier 131-23456-9 "Tech Supplies SRL"
  python main.py add-department Compras
  python main.py suppliers
"""
import logging
import sys
from functools import wraps

import click

from config import Config
from models.purchase_order import ALL_STATES
from purchasing.catalog import CatalogService
from purchasing.errors import PurchasingError
from purchasing.fiscal_id import fiscal_id_kind, format_fiscal_id, validate_fiscal_id
from purchasing.lifecycle import PurchaseOrderLifecycle, build_store

logger = logging.getLogger("purchasing.cli")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )
    # Quieten noisy third-party loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def _handle_errors(func):
    """Print the user-facing message for purchasing errors and exit non-zero."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except PurchasingError as exc:
            logger.debug("%s failed: %s", func.__name__, exc, exc_info=True)
            click.echo(f"✗ {exc.user_message}", err=True)
            for message in getattr(exc, "errors", None) or []:
                click.echo(f"    - {message}", err=True)
            sys.exit(1)
    return wrapper


def _lifecycle(ctx: click.Context) -> PurchaseOrderLifecycle:
    return PurchaseOrderLifecycle.from_config(ctx.obj["config"])


def _catalog(ctx: click.Context) -> CatalogService:
    return CatalogService(build_store(ctx.obj["config"]))


def _echo_order(order) -> None:
    article = order.article.description if order.article else order.article_id
    supplier = order.supplier.display_name if order.supplier else order.supplier_id
    click.echo(
        f"  {order.code:<18} {order.order_date}  {order.state:<10} "
        f"{order.quantity} × {order.unit_cost} = {order.total}  {article} / {supplier}"
    )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Purchasing — purchase orders, supplier identifiers and ledger posting."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj.setdefault("config", Config())
    _setup_logging(verbose)


# --------------------------------------------------------------------
# check command
# --------------------------------------------------------------------

@cli.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """Verify that the table store and the ledger service are reachable."""
    config: Config = ctx.obj["config"]
    click.echo("\n=== Purchasing Setup Check ===\n")
    click.echo(f"  Store backend:   {config.store_backend}")
    click.echo(f"  Store location:  {config.store_url or config.db_path}")
    click.echo(f"  Ledger endpoint: {config.ledger_api_url}")
    click.echo(f"  Accounts:        DB {config.inventory_account_id} / CR {config.payables_account_id}")
    click.echo()

    ok = True
    try:
        lifecycle = _lifecycle(ctx)
        orders = lifecycle.refresh(raise_errors=True)
        click.echo(f"  Table store:     ✓ reachable ({len(orders)} orders)")
    except (PurchasingError, ValueError) as exc:
        click.echo(f"  Table store:     ✗ {exc}")
        ok = False
        lifecycle = None

    if lifecycle is not None:
        try:
            lifecycle.poster.ledger.http.credentials.acquire()
            click.echo("  Ledger login:    ✓ signed in")
        except PurchasingError as exc:
            click.echo(f"  Ledger login:    ✗ {exc}")
            click.echo("  → Check LEDGER_API_URL, LEDGER_USERNAME, LEDGER_PASSWORD")
            ok = False

    click.echo()
    if not ok:
        sys.exit(1)


# --------------------------------------------------------------------
# fiscal identifier commands
# --------------------------------------------------------------------

@cli.command("validate-id")
@click.argument("identifier")
def validate_id(identifier: str) -> None:
    """Check a personal (11-digit) or business (9-digit) fiscal identifier."""
    kind = fiscal_id_kind(identifier) or "unknown length"
    if validate_fiscal_id(identifier):
        click.echo(f"✓ {format_fiscal_id(identifier)} is a valid {kind} identifier")
        return
    click.echo(f"✗ {identifier} is not a valid identifier ({kind})", err=True)
    sys.exit(1)


@cli.command("format-id")
@click.argument("identifier")
def format_id(identifier: str) -> None:
    """Print the hyphenated display form of an identifier."""
    click.echo(format_fiscal_id(identifier))


# --------------------------------------------------------------------
# order commands
# --------------------------------------------------------------------

_STATE_CHOICE = click.Choice(list(ALL_STATES))


@cli.command("create-order")
@click.option("--article", "article_id", required=True, help="Article id")
@click.option("--supplier", "supplier_id", required=True, help="Supplier id")
@click.option("--quantity", required=True, help="Quantity (> 0)")
@click.option("--unit-cost", required=True, help="Unit cost (>= 0)")
@click.option("--state", type=_STATE_CHOICE, default="Pending", show_default=True)
@click.option("--date", "order_date", default=None, help="Order date YYYY-MM-DD (default: today)")
@click.pass_context
@_handle_errors
def create_order(ctx: click.Context, article_id, supplier_id, quantity, unit_cost, state, order_date) -> None:
    """Create a purchase order; an Approved order is posted to the ledger."""
    data = {
        "article_id": article_id,
        "supplier_id": supplier_id,
        "quantity": quantity,
        "unit_cost": unit_cost,
        "state": state,
    }
    if order_date:
        data["order_date"] = order_date

    result = _lifecycle(ctx).create(data)
    click.echo(f"✓ Created order {result.order.code} ({result.order.id})")
    if result.posted:
        click.echo(f"  Posted DB/CR {result.posting.total}")


@cli.command("update-order")
@click.argument("order_id")
@click.option("--article", "article_id", default=None, help="Article id")
@click.option("--supplier", "supplier_id", default=None, help="Supplier id")
@click.option("--quantity", default=None, help="Quantity (> 0)")
@click.option("--unit-cost", default=None, help="Unit cost (>= 0)")
@click.option("--state", type=_STATE_CHOICE, default=None)
@click.option("--date", "order_date", default=None, help="Order date YYYY-MM-DD")
@click.pass_context
@_handle_errors
def update_order(ctx: click.Context, order_id, article_id, supplier_id, quantity, unit_cost, state, order_date) -> None:
    """Edit an order; options left out keep their current value."""
    lifecycle = _lifecycle(ctx)
    current = lifecycle.get(order_id)
    data = {
        "article_id": article_id or current.article_id,
        "supplier_id": supplier_id or current.supplier_id,
        "quantity": quantity if quantity is not None else current.quantity,
        "unit_cost": unit_cost if unit_cost is not None else current.unit_cost,
        "state": state or current.state,
        "order_date": order_date or current.order_date,
    }

    result = lifecycle.update(order_id, data)
    click.echo(f"✓ Updated order {result.order.code} → {result.order.state}")
    if result.posted:
        click.echo(f"  Posted DB/CR {result.posting.total}")


@cli.command("delete-order")
@click.argument("order_id")
@click.confirmation_option(prompt="Delete this order? Ledger entries are not reversed.")
@click.pass_context
@_handle_errors
def delete_order(ctx: click.Context, order_id: str) -> None:
    """Delete an order (posted ledger entries stay in place)."""
    if _lifecycle(ctx).delete(order_id):
        click.echo(f"✓ Deleted order {order_id}")
    else:
        click.echo(f"Order {order_id} was already gone")


@cli.command("post-order")
@click.argument("order_id")
@click.pass_context
@_handle_errors
def post_order(ctx: click.Context, order_id: str) -> None:
    """Post an Approved order to the ledger again (e.g. after a failed posting)."""
    result = _lifecycle(ctx).post(order_id)
    click.echo(f"✓ Posted order {result.order_code}: DB/CR {result.total}")


@cli.command()
@click.option("--state", type=_STATE_CHOICE, default=None, help="Only show orders in this state")
@click.pass_context
@_handle_errors
def orders(ctx: click.Context, state: str | None) -> None:
    """List purchase orders, newest first."""
    listed = _lifecycle(ctx).refresh(raise_errors=True)
    if state:
        listed = [o for o in listed if o.state == state]
    click.echo(f"\n{len(listed)} order(s)\n")
    for order in listed:
        _echo_order(order)
    click.echo()


@cli.command()
@click.pass_context
@_handle_errors
def entries(ctx: click.Context) -> None:
    """List ledger entries visible to the configured ledger user."""
    listed = _lifecycle(ctx).poster.ledger.list_entries()
    click.echo(f"\n{len(listed)} entr{'y' if len(listed) == 1 else 'ies'}\n")
    for entry in listed:
        click.echo(
            f"  {str(entry.id or ''):<8} {entry.entry_date or '':<12} {entry.movement_type}  "
            f"acct {entry.account_id:<4} {entry.amount:>12}  {entry.description}"
        )
    click.echo()


# --------------------------------------------------------------------
# catalog commands
# --------------------------------------------------------------------

@cli.command("add-supplier")
@click.argument("tax_id")
@click.argument("display_name")
@click.pass_context
@_handle_errors
def add_supplier(ctx: click.Context, tax_id: str, display_name: str) -> None:
    """Add a supplier; the fiscal identifier is checked before saving."""
    supplier = _catalog(ctx).add_supplier(tax_id, display_name)
    click.echo(f"✓ Added supplier {supplier.display_name} ({supplier.tax_id_display})")


@cli.command()
@click.option("--all", "include_inactive", is_flag=True, help="Include inactive suppliers")
@click.pass_context
@_handle_errors
def suppliers(ctx: click.Context, include_inactive: bool) -> None:
    """List suppliers by name."""
    listed = _catalog(ctx).suppliers(active_only=not include_inactive)
    click.echo(f"\n{len(listed)} supplier(s)\n")
    for supplier in listed:
        click.echo(f"  {supplier.tax_id_display:<15} {supplier.display_name}")
    click.echo()


@cli.command("add-department")
@click.argument("name")
@click.pass_context
@_handle_errors
def add_department(ctx: click.Context, name: str) -> None:
    """Add a department (letters and spaces only, at most 50 characters)."""
    department = _catalog(ctx).add_department(name)
    click.echo(f"✓ Added department {department.name}")


if __name__ == "__main__":
    cli()
