from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label, MarkdownViewer

from api.models import Product
from utils.messages import CartChangedMessage
from utils.pure import format_price, generate_markdown_table
from views.base_screen import BaseScreen


class ProductListScreen(BaseScreen):
    """
    Catalog listing, open to guests. Enter (or the button) adds one of the
    highlighted product to the cart.
    """

    # only here to be displayed in footer
    BINDINGS = [
        Binding("enter", "noop", "Add to Cart", show=True, key_display="⏎"),
    ]

    def __init__(self):
        super().__init__()

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield MarkdownViewer(id="md-prod-detail", show_table_of_contents=False)
        yield DataTable(id="table-products")
        with Horizontal(id="hort-table-control"):
            yield Label("", id="label-prod-count")
            yield Button("Refresh", id="btn-refresh")
            yield Button("Add to Cart", id="btn-addcart", variant="primary")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_column("Name", key="name")
        table.add_column("Price", key="price")
        table.add_column("In Cart", key="in_cart")
        self.load_products()

    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True, group="catalog")
    async def load_products(self) -> None:
        catalog = self.app.state.catalog
        result = await catalog.fetch_products()
        label = self.query_one("#label-prod-count", Label)
        if not result:
            label.content = f"{catalog.error}. Press Refresh to try again."
        else:
            label.content = f"Showing {len(catalog.products)} products"
        self._render_table()

    @on(ScreenResume)
    @on(CartChangedMessage)
    def handle_cart_change(self) -> None:
        self._render_table()

    def _render_table(self) -> None:
        cart = self.app.state.cart
        table = self.query_one(DataTable)
        selected = self._selected_product()
        table.clear()
        for product in self.app.state.catalog.products:
            qty = cart.quantity_of(product.id)
            table.add_row(
                product.name,
                format_price(product.price),
                str(qty) if qty else "",
                key=product.id,
            )
        if selected is not None and selected.id in table.rows:
            table.move_cursor(row=table.get_row_index(selected.id))
        self._render_detail(self._selected_product())

    def _selected_product(self) -> Product | None:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return self.app.state.catalog.get(row_key.value)

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self) -> None:
        self._render_detail(self._selected_product())

    def _render_detail(self, product: Product | None) -> None:
        viewer = self.query_one("#md-prod-detail", MarkdownViewer)
        if product is None:
            viewer.document.update("### Select a product to view its details.")
            return
        rows = [
            ["Price", format_price(product.price)],
            ["In Cart", self.app.state.cart.quantity_of(product.id)],
        ]
        md = (
            f"### {product.name}\n\n{product.description}\n\n"
            + generate_markdown_table(["Attribute", "Value"], rows, ["l", "l"])
        )
        viewer.document.update(md)

    @on(Button.Pressed, "#btn-addcart")
    @on(DataTable.RowSelected)
    @work(group="cart")
    async def handle_add_to_cart(self) -> None:
        product = self._selected_product()
        if product is None:
            return
        cart = self.app.state.cart
        btn = self.query_one("#btn-addcart", Button)
        btn.disabled = True
        try:
            result = await cart.add_item(product)
            # guests are told to sign in, then offered the login screen
            if not result and not self.app.state.session.is_authenticated:
                if await self.app.ensure_signed_in():
                    result = await cart.add_item(product)
        finally:
            btn.disabled = False
        if result:
            self.post_message(CartChangedMessage())
