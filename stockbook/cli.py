"""Command-line interface for the warehouse and shop inventory."""

import sys
from functools import wraps
from pathlib import Path
from typing import Optional

import click

from .models.item import Item
from .models.log_entry import LogType
from .services.inventory_service import InventoryService
from .services.items_store import IMPORT_MODES, LOCATIONS, SORT_FIELDS, STOCK_FILTERS
from .storage.backend import JsonFileStorage
from .utils.config import get_config
from .utils.exceptions import BaseAppException
from .utils.logger import get_cli_logger

APP_VERSION = "1.0.0"


def handle_errors(func):
    """Report application errors as a one-line notification and exit 1."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except BaseAppException as e:
            get_cli_logger().info(f"{type(e).__name__}: {e.message} {e.details or ''}".rstrip())
            click.echo(click.style(f"✗ {e.message}", fg="red"), err=True)
            sys.exit(1)
    return wrapper


def _service(ctx: click.Context) -> InventoryService:
    return ctx.obj["service_factory"]()


def _write_output(text: str, output: Optional[str], label: str) -> None:
    if output:
        Path(output).write_text(text, encoding="utf-8")
        click.echo(click.style(f"✓ {label} written to {output}", fg="green"), err=True)
    else:
        click.echo(text, nl=False)


def _echo_item_table(service: InventoryService, page, location: Optional[str] = None) -> None:
    if not page.items:
        click.echo("No items found.")
        return

    click.echo(f"{'ID':<32}  {'Name':<28} {'Category':<14} {'Cost':>12} {'Sell':>12} {'WH':>6} {'Shop':>6}")
    click.echo("─" * 120)
    for item in page.items:
        low = location and service.is_low_stock(item.quantity_at(location))
        line = (
            f"{item.item_id:<32}  {item.name[:28]:<28} {item.category[:14]:<14} "
            f"{service.format_currency(item.cost_price):>12} {service.format_currency(item.sell_price):>12} "
            f"{item.warehouse_qty:>6} {item.shop_qty:>6}"
        )
        click.echo(line + (click.style("  LOW", fg="yellow", bold=True) if low else ""))
    click.echo("─" * 120)
    click.echo(f"Showing {page.start}-{page.end} of {page.total} (page {page.page}/{max(page.total_pages, 1)})")


def _echo_item(service: InventoryService, item: Item) -> None:
    click.echo(f"  ID:          {item.item_id}")
    click.echo(f"  Name:        {item.name}")
    click.echo(f"  Category:    {item.category or '-'}")
    click.echo(f"  Unit:        {item.unit}")
    click.echo(f"  Cost price:  {service.format_currency(item.cost_price)}")
    click.echo(f"  Sell price:  {service.format_currency(item.sell_price)}")
    click.echo(f"  Warehouse:   {item.warehouse_qty} {item.unit}")
    click.echo(f"  Shop:        {item.shop_qty} {item.unit}")
    if item.notes:
        click.echo(f"  Notes:       {item.notes}")


@click.group()
@click.version_option(version=APP_VERSION)
@click.option("--data-file", type=click.Path(dir_okay=False), default=None,
              help="JSON data file (defaults to the configured storage.data_file)")
@click.pass_context
def cli(ctx: click.Context, data_file: Optional[str]):
    """
    Warehouse ➜ Shop inventory.

    Track items across the warehouse and the shop, move stock between them
    and keep an activity log.
    """
    ctx.ensure_object(dict)
    cache = {}

    def factory() -> InventoryService:
        if "service" not in cache:
            storage = JsonFileStorage(data_file) if data_file else None
            cache["service"] = InventoryService(storage=storage)
        return cache["service"]

    ctx.obj.setdefault("service_factory", factory)


# ----------------------------------------------------------------------
# Dashboard
# ----------------------------------------------------------------------

@cli.command()
@click.pass_context
@handle_errors
def dashboard(ctx: click.Context):
    """Show stock totals, values and recent activity."""
    service = _service(ctx)
    summary = service.dashboard()

    click.echo("Inventory Dashboard")
    click.echo("=" * 60)
    click.echo(f"Total items:        {summary.total_items}")
    click.echo(f"Warehouse units:    {summary.warehouse_total}")
    click.echo(f"Shop units:         {summary.shop_total}")
    click.echo(f"Warehouse value:    {service.format_currency(summary.warehouse_value)}")
    click.echo(f"Shop value:         {service.format_currency(summary.shop_value)}")
    click.echo(f"Potential revenue:  {service.format_currency(summary.potential_revenue)}")

    low_color = "yellow" if summary.low_stock_warehouse or summary.low_stock_shop else None
    click.echo(click.style(
        f"Low stock:          {summary.low_stock_warehouse} warehouse, {summary.low_stock_shop} shop",
        fg=low_color
    ))
    click.echo()

    click.echo("Recent activity:")
    if not summary.recent_activity:
        click.echo("  No recent activity")
    for entry in summary.recent_activity:
        qty = f" x{entry.qty}" if entry.qty else ""
        click.echo(f"  {entry.time_iso}  {entry.type.value:<8} {entry.item_name or '-'}{qty}  {entry.details or ''}".rstrip())


# ----------------------------------------------------------------------
# Items
# ----------------------------------------------------------------------

@cli.group()
def items():
    """Create, edit and list items."""
    pass


@items.command("list")
@click.option("--search", "-s", default=None, help="Match name, category or notes")
@click.option("--category", "-c", default=None, help="Exact category")
@click.option("--sort", "sort_field", type=click.Choice(SORT_FIELDS), default="name")
@click.option("--desc", is_flag=True, help="Sort descending")
@click.option("--page", "-p", type=int, default=1)
@click.pass_context
@handle_errors
def items_list(ctx, search, category, sort_field, desc, page):
    """List items."""
    service = _service(ctx)
    _echo_item_table(service, service.list_items(search, category, sort_field, desc, page))


@items.command("add")
@click.option("--name", required=True)
@click.option("--cost-price", required=True)
@click.option("--sell-price", required=True)
@click.option("--category", default="")
@click.option("--unit", default="pcs")
@click.option("--warehouse-qty", default="0")
@click.option("--shop-qty", default="0")
@click.option("--notes", default="")
@click.pass_context
@handle_errors
def items_add(ctx, name, cost_price, sell_price, category, unit, warehouse_qty, shop_qty, notes):
    """Add a new item."""
    service = _service(ctx)
    item = service.create_item({
        "name": name,
        "costPrice": cost_price,
        "sellPrice": sell_price,
        "category": category,
        "unit": unit,
        "warehouseQty": warehouse_qty,
        "shopQty": shop_qty,
        "notes": notes,
    })
    click.echo(click.style("✓ Item added", fg="green", bold=True))
    _echo_item(service, item)


@items.command("update")
@click.argument("item_id")
@click.option("--name", default=None)
@click.option("--cost-price", default=None)
@click.option("--sell-price", default=None)
@click.option("--category", default=None)
@click.option("--unit", default=None)
@click.option("--warehouse-qty", default=None)
@click.option("--shop-qty", default=None)
@click.option("--notes", default=None)
@click.pass_context
@handle_errors
def items_update(ctx, item_id, name, cost_price, sell_price, category, unit, warehouse_qty, shop_qty, notes):
    """Edit an item; options left out are unchanged."""
    service = _service(ctx)
    item = service.update_item(item_id, {
        "name": name,
        "costPrice": cost_price,
        "sellPrice": sell_price,
        "category": category,
        "unit": unit,
        "warehouseQty": warehouse_qty,
        "shopQty": shop_qty,
        "notes": notes,
    })
    click.echo(click.style("✓ Item updated", fg="green", bold=True))
    _echo_item(service, item)


@items.command("delete")
@click.argument("item_id")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
@handle_errors
def items_delete(ctx, item_id, yes):
    """Delete an item. Its log entries are kept."""
    service = _service(ctx)
    if not yes:
        click.confirm(f"Delete item {item_id}?", abort=True)
    item = service.delete_item(item_id)
    click.echo(click.style(f"✓ Deleted {item.name}", fg="green"))


# ----------------------------------------------------------------------
# Warehouse / shop
# ----------------------------------------------------------------------

def _location_group(location: str) -> click.Group:
    @click.group(name=location, help=f"{location.capitalize()} stock.")
    def group():
        pass

    @group.command("list")
    @click.option("--search", "-s", default=None)
    @click.option("--category", "-c", default=None)
    @click.option("--stock", "stock_filter", type=click.Choice(STOCK_FILTERS), default=None,
                  help="Only low, normal or zero stock")
    @click.option("--sort", "sort_field", type=click.Choice(SORT_FIELDS), default="name")
    @click.option("--desc", is_flag=True)
    @click.option("--page", "-p", type=int, default=1)
    @click.pass_context
    @handle_errors
    def location_list(ctx, search, category, stock_filter, sort_field, desc, page):
        service = _service(ctx)
        listing = service.list_location(location, search, category, stock_filter, sort_field, desc, page)
        _echo_item_table(service, listing, location)

    @group.command("set")
    @click.argument("item_id")
    @click.argument("quantity")
    @click.pass_context
    @handle_errors
    def location_set(ctx, item_id, quantity):
        item = _service(ctx).set_location_quantity(item_id, location, quantity)
        click.echo(click.style(
            f"✓ {item.name}: {location} quantity set to {item.quantity_at(location)} {item.unit}", fg="green"
        ))

    return group


warehouse = _location_group("warehouse")
shop = _location_group("shop")
cli.add_command(warehouse)
cli.add_command(shop)


@shop.command("remove")
@click.argument("item_id")
@click.pass_context
@handle_errors
def shop_remove(ctx, item_id):
    """Set an item's shop quantity to zero."""
    item = _service(ctx).remove_from_shop(item_id)
    click.echo(click.style(f"✓ {item.name} removed from shop", fg="green"))


@cli.command("bulk-set")
@click.argument("location", type=click.Choice(LOCATIONS))
@click.argument("assignments", nargs=-1, required=True)
@click.pass_context
@handle_errors
def bulk_set(ctx, location, assignments):
    """
    Set several quantities at once.

    ASSIGNMENTS are ITEM_ID=QTY pairs. Unknown ids are ignored.
    """
    updates = []
    for assignment in assignments:
        item_id, sep, quantity = assignment.partition("=")
        if not sep:
            raise click.BadParameter(f"expected ITEM_ID=QTY, got {assignment!r}")
        updates.append({"itemId": item_id, "quantity": quantity})

    _service(ctx).bulk_set_quantity(location, updates)
    click.echo(click.style(f"✓ Bulk update of {location} quantities for {len(updates)} items", fg="green"))


@cli.command()
@click.argument("item_id")
@click.argument("quantity", type=int)
@click.option("--note", default=None, help="Note stored with the transfer log entry")
@click.pass_context
@handle_errors
def transfer(ctx, item_id, quantity, note):
    """Move QUANTITY units of an item from the warehouse to the shop."""
    if quantity <= 0:
        raise click.BadParameter("quantity must be a positive whole number", param_hint="QUANTITY")

    item = _service(ctx).transfer(item_id, quantity, note)
    click.echo(click.style(f"✓ Transferred {quantity} {item.unit} of {item.name}", fg="green", bold=True))
    click.echo(f"  Warehouse: {item.warehouse_qty} {item.unit}")
    click.echo(f"  Shop:      {item.shop_qty} {item.unit}")


# ----------------------------------------------------------------------
# Logs
# ----------------------------------------------------------------------

@cli.group()
def logs():
    """Activity log."""
    pass


@logs.command("list")
@click.option("--search", "-s", default=None, help="Match item name or details")
@click.option("--type", "log_type", type=click.Choice([t.value for t in LogType]), default=None)
@click.option("--page", "-p", type=int, default=1)
@click.pass_context
@handle_errors
def logs_list(ctx, search, log_type, page):
    """List log entries, newest first."""
    listing = _service(ctx).list_logs(search, log_type, page)
    if not listing.items:
        click.echo("No log entries.")
        return

    for entry in listing.items:
        qty = f"Quantity: {entry.qty}  " if entry.qty else ""
        click.echo(f"{entry.time_iso}  {entry.type.value:<8} {entry.item_name or '-':<28} {qty}{entry.details or '-'}")
    click.echo(f"Showing {listing.start}-{listing.end} of {listing.total}")


@logs.command("export")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None)
@click.pass_context
@handle_errors
def logs_export(ctx, output):
    """Export the log as CSV (insertion order)."""
    _write_output(_service(ctx).export_logs_csv(), output, "Logs")


# ----------------------------------------------------------------------
# CSV and backups
# ----------------------------------------------------------------------

@cli.command("export-csv")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None)
@click.pass_context
@handle_errors
def export_csv(ctx, output):
    """Export items as CSV."""
    _write_output(_service(ctx).export_items_csv(), output, "Items")


@cli.command("import-csv")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--mode", type=click.Choice(IMPORT_MODES), default="merge",
              help="merge updates matching names; replace discards all items first")
@click.option("--yes", is_flag=True, help="Do not ask before a replace import")
@click.pass_context
@handle_errors
def import_csv(ctx, csv_file, mode, yes):
    """Import items from CSV_FILE (needs name, costPrice and sellPrice columns)."""
    if mode == "replace" and not yes:
        click.confirm("Replace import discards every existing item. Continue?", abort=True)

    text = Path(csv_file).read_text(encoding="utf-8")
    result = _service(ctx).import_items_csv(text, mode)

    click.echo(click.style(f"✓ Successfully imported {result.imported_count} items", fg="green", bold=True))
    if result.failed_count:
        click.echo(click.style(f"  {result.failed_count} rows skipped with errors:", fg="yellow"))
        for error in result.errors[:10]:
            click.echo(f"    row {error.row_number} ({error.name or '?'}): {error.message}")
        if len(result.errors) > 10:
            click.echo(f"    ... and {len(result.errors) - 10} more errors")
    if result.skipped_count:
        click.echo(f"  {result.skipped_count} duplicate rows ignored")


@cli.command()
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None)
@click.pass_context
@handle_errors
def backup(ctx, output):
    """Write a JSON backup of all data."""
    _write_output(_service(ctx).backup(), output, "Backup")


@cli.command()
@click.argument("backup_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
@handle_errors
def restore(ctx, backup_file):
    """Restore data from a JSON backup (fields missing from it are kept)."""
    service = _service(ctx)
    service.restore(Path(backup_file).read_text(encoding="utf-8"))
    click.echo(click.style("✓ Data restored successfully", fg="green", bold=True))
    click.echo(f"  Items: {service.items.count()}")


@cli.command()
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
@handle_errors
def clear(ctx, yes):
    """Erase items, logs and settings (theme is kept)."""
    if not yes:
        click.confirm("Are you sure you want to clear all data? This action cannot be undone.", abort=True)
    _service(ctx).clear_all_data()
    click.echo(click.style("✓ All data cleared successfully", fg="green"))


# ----------------------------------------------------------------------
# Settings
# ----------------------------------------------------------------------

@cli.group()
def settings():
    """Operator settings."""
    pass


@settings.command("show")
@click.pass_context
@handle_errors
def settings_show(ctx):
    service = _service(ctx)
    for key, value in service.settings.settings.to_dict().items():
        click.echo(f"  {key:<20} {value}")
    click.echo(f"  {'theme':<20} {service.settings.get_theme()}")


@settings.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
@handle_errors
def settings_set(ctx, key, value):
    """Set KEY (e.g. currencySymbol, lowStockThreshold, language) to VALUE."""
    stored = _service(ctx).settings.set(key, value)
    click.echo(click.style(f"✓ {key} = {stored}", fg="green"))


@cli.command()
@click.argument("mode", type=click.Choice(["light", "dark", "toggle"]), default="toggle")
@click.pass_context
@handle_errors
def theme(ctx, mode):
    """Set or toggle the theme preference."""
    store = _service(ctx).settings
    current = store.toggle_theme() if mode == "toggle" else store.set_theme(mode)
    click.echo(f"Theme: {current}")


@cli.command("config-info")
@click.pass_context
@handle_errors
def config_info(ctx):
    """Display current configuration settings."""
    config = get_config()
    info = _service(ctx).app_info()

    click.echo("Configuration Settings:")
    click.echo("=" * 60)
    click.echo(f"  App version:     {APP_VERSION}")
    click.echo(f"  Data version:    {info['data_version'] or 'N/A'}")
    click.echo(f"  Data file:       {info['data_file']}")
    click.echo(f"  Strict writes:   {config.storage.strict_writes}")
    click.echo(f"  Environment:     {config.env.environment}")
    click.echo(f"  Log level:       {config.logging.level}")
    click.echo(f"  Page size:       {config.ui.items_per_page}")
    click.echo(f"  Theme:           {info['theme']}")


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
