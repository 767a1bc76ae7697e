from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label, MarkdownViewer

from services.orders import OrderEntry
from utils.messages import ModeSwitchedMessage, NewOrderMessage
from utils.pure import format_date, format_price, generate_markdown_table
from views.base_screen import BaseScreen
from views.modal_dialog import CancelOrderModal


def order_detail_markdown(entry: OrderEntry) -> str:
    order = entry.order
    ship = order.shipping_address
    header = (
        f"### Order #{order.order_number}\n"
        f"Status: **{order.status.capitalize()}**  \n"
        f"Order Date: {format_date(order.created_at)}  \n"
        # estimate only, not sent by the server
        f"Expected Delivery (estimate): {format_date(entry.expected_delivery)}  \n"
        f"Ship To: {ship.first_name} {ship.last_name}, {ship.address}\n\n"
    )
    table = generate_markdown_table(
        ["Product", "Qty"],
        [[item.product_name, item.quantity] for item in order.items],
        ["l", "r"],
    )
    return header + table + f"\n\n**Total:** {format_price(order.total_amount)}"


class OrdersScreen(BaseScreen):
    """
    Customers can browse their past orders, view details and cancel
    orders that are still confirmed or processing.

    Layout:
    - Markdown detail view at the top, showing the highlighted order.
    - Orders table below, as returned by the server.
    """

    BINDINGS = [
        Binding("escape", "noop", "Back", show=True),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._entries: List[OrderEntry] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-table-control"):
            yield Label("", id="label-order-count")
            yield Button("Refresh", id="btn-refresh")
            yield Button("Cancel Order", id="btn-cancel", variant="error")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns(
            "Order", "Date", "Status", "Expected Delivery", "Items", "Total"
        )

    @on(Button.Pressed, "#btn-refresh")
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(NewOrderMessage)
    def handle_refresh(self) -> None:
        self._load_orders()

    @work(exclusive=True, group="orders")
    async def _load_orders(self) -> None:
        history = self.app.state.orders
        result = await history.fetch_orders()
        label = self.query_one("#label-order-count", Label)
        if not result:
            label.content = f"{history.error}. Press Refresh to try again."
        else:
            label.content = f"Showing {len(history.orders)} orders"
        self._render_table(history.entries)

    def _render_table(self, entries: List[OrderEntry]) -> None:
        self._entries = entries
        table = self.query_one(DataTable)
        table.clear()
        for entry in entries:
            order = entry.order
            table.add_row(
                f"#{order.order_number}",
                format_date(order.created_at),
                order.status.capitalize(),
                format_date(entry.expected_delivery),
                sum(item.quantity for item in order.items),
                format_price(order.total_amount),
                key=order.id,
            )
        self._update_detail_for_cursor()

    def _selected_entry(self) -> OrderEntry | None:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        cursor_row = table.cursor_row
        if cursor_row is None or cursor_row >= len(self._entries):
            return None
        return self._entries[cursor_row]

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self) -> None:
        self._update_detail_for_cursor()

    def _update_detail_for_cursor(self) -> None:
        entry = self._selected_entry()
        self.query_one("#btn-cancel", Button).disabled = (
            entry is None or not entry.cancellable
        )
        self._render_detail(entry)

    def _render_detail(self, entry: OrderEntry | None) -> None:
        viewer = self.query_one("#md-order-detail", MarkdownViewer)
        if entry is None:
            viewer.document.update("### Select an order to view its details.")
            return
        viewer.document.update(order_detail_markdown(entry))

    @on(Button.Pressed, "#btn-cancel")
    @work(group="cancel")
    async def handle_cancel(self) -> None:
        entry = self._selected_entry()
        if entry is None:
            return
        order = entry.order
        confirmed = await self.app.push_screen_wait(CancelOrderModal(order))
        if not confirmed:
            return

        btn = self.query_one("#btn-cancel", Button)
        btn.disabled = True
        await self.app.state.orders.cancel(order.id)
        self._render_table(self.app.state.orders.entries)
