from textual import on, work
from textual.app import ComposeResult
from textual.containers import (
    Container,
    Horizontal,
    HorizontalGroup,
    Vertical,
    VerticalScroll,
)
from textual.events import ScreenResume
from textual.message import Message
from textual.widgets import Button, Input, Label, Rule, TextArea

from api.models import CartLine
from services.checkout import ShippingInfo
from utils.messages import CartChangedMessage, ModeSwitchedMessage, NewOrderMessage
from utils.pure import format_price
from views.base_screen import BaseScreen
from views.modal_dialog import ClearCartModal, OrderPlacedModal, RemoveItemModal


class CartLineQtyMessage(Message):
    bubble = True

    def __init__(self, product_id: str, quantity: int) -> None:
        super().__init__()
        self.product_id = product_id
        self.quantity = quantity


class CartLineRemoveMessage(Message):
    bubble = True

    def __init__(self, product_id: str) -> None:
        super().__init__()
        self.product_id = product_id


class CartLineWidget(HorizontalGroup):
    def __init__(self, line: CartLine):
        super().__init__()
        self.line = line

    def compose(self):
        with Container(id="div-item"):
            yield Label(self.line.name, id="label-item-name")
            yield Label(
                f"{format_price(self.line.unit_price)} each", id="label-item-price"
            )
        with Horizontal(id="div-actions"):
            # no going below 1 from here, removal has its own button
            yield Button("-", id="btn-sub-qty", disabled=self.line.quantity <= 1)
            yield Label(str(self.line.quantity), id="label-item-qty")
            yield Button("+", id="btn-add-qty")
            yield Label(format_price(self.line.line_total), id="label-item-total")
            yield Button("Remove", id="btn-item-remove", variant="error")

    @on(Button.Pressed, "#btn-sub-qty")
    def handle_sub_qty(self):
        line = self.line
        self.post_message(CartLineQtyMessage(line.product_id, line.quantity - 1))

    @on(Button.Pressed, "#btn-add-qty")
    def handle_add_qty(self):
        line = self.line
        self.post_message(CartLineQtyMessage(line.product_id, line.quantity + 1))

    @on(Button.Pressed, "#btn-item-remove")
    def handle_remove(self):
        self.post_message(CartLineRemoveMessage(self.line.product_id))


class CartScreen(BaseScreen):
    """
    Cart lines, totals as sent by the server, and the shipping form for checkout.
    """

    def __init__(self) -> None:
        super().__init__()

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="hort-cart"):
            yield VerticalScroll(id="vertscroll-content")
            with Vertical(id="div-shipping"):
                yield Label("First Name *")
                yield Input(placeholder="Jane", id="input-first-name")
                yield Label("Last Name *")
                yield Input(placeholder="Doe", id="input-last-name")
                yield Label("Address *")
                yield TextArea(id="input-address")
        yield Label("Subtotal (0 items): ₹0", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Clear Cart", id="btn-clear-cart")
            yield Button("Refresh", id="btn-refresh")
            yield Button("Place Order", id="btn-checkout", variant="primary")

    async def on_mount(self):
        self.handle_cart_change()

    @on(CartChangedMessage)
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True, group="cart-render")
    async def handle_cart_change(self):
        await self.app.state.cart.load()
        await self._render_cart()

    async def _render_cart(self) -> None:
        cart = self.app.state.cart
        content = self.query_one("#vertscroll-content")
        await content.remove_children()
        await content.mount_all([CartLineWidget(line) for line in cart.items])

        if not cart.items:
            content.add_class("no-items")
            await content.mount(Label("Your cart is empty", id="label-empty"))
        else:
            content.remove_class("no-items")

        items_word = "item" if cart.total_items == 1 else "items"
        self.query_one("#label-cart-total", Label).content = (
            f"Subtotal ({cart.total_items} {items_word}): "
            f"{format_price(cart.total_amount)}   Shipping: Free   "
            f"Total: {format_price(cart.total_amount)}"
        )
        self._refresh_buttons()
        await self.refresh_sidebar()

    def _refresh_buttons(self) -> None:
        cart = self.app.state.cart
        self.query_one("#btn-checkout", Button).disabled = (
            self.app.state.checkout.busy or not cart.items
        )
        self.query_one("#btn-clear-cart", Button).disabled = not cart.items

    @on(CartLineQtyMessage)
    @work(group="cart")
    async def handle_qty_change(self, message: CartLineQtyMessage) -> None:
        await self.app.state.cart.set_quantity(message.product_id, message.quantity)
        await self._render_cart()

    @on(CartLineRemoveMessage)
    @work(group="cart")
    async def handle_remove_item(self, message: CartLineRemoveMessage) -> None:
        line = self.app.state.cart.cart.find(message.product_id)
        remove_confirmed = await self.app.push_screen_wait(
            RemoveItemModal(line.name if line else "")
        )
        if remove_confirmed:
            await self.app.state.cart.remove_item(message.product_id)
            await self._render_cart()

    @on(Button.Pressed, "#btn-clear-cart")
    @work(group="cart")
    async def handle_clear_cart(self) -> None:
        if not self.app.state.cart.items:
            self.app.notify("Cart is empty.", severity="warning")
            return

        remove_confirmed = await self.app.push_screen_wait(
            ClearCartModal(self.app.state.cart.total_items)
        )
        if remove_confirmed:
            await self.app.state.cart.clear()
            await self._render_cart()

    def _shipping_info(self) -> ShippingInfo:
        return ShippingInfo(
            first_name=self.query_one("#input-first-name", Input).value,
            last_name=self.query_one("#input-last-name", Input).value,
            address=self.query_one("#input-address", TextArea).text,
        )

    def _reset_form(self) -> None:
        self.query_one("#input-first-name", Input).value = ""
        self.query_one("#input-last-name", Input).value = ""
        self.query_one("#input-address", TextArea).text = ""

    @on(Button.Pressed, "#btn-checkout")
    @work(group="checkout")
    async def handle_checkout(self) -> None:
        checkout = self.app.state.checkout
        if checkout.busy:
            return

        btn = self.query_one("#btn-checkout", Button)
        btn.disabled = True
        btn.label = "Placing Order..."
        try:
            result = await checkout.submit(self._shipping_info())
        finally:
            btn.label = "Place Order"
            self._refresh_buttons()

        if not result:
            return

        self._reset_form()
        await self._render_cart()
        self.app.post_message(NewOrderMessage())
        await self.app.push_screen_wait(OrderPlacedModal(result.value))
