from typing import Dict, Literal, Optional, Tuple, override

from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Label, Markdown

from api.models import Order
from services.orders import expected_delivery
from utils.messages import QuitRequestedMessage
from utils.pure import format_date, format_price, generate_markdown_table

Tone = Literal["default", "positive", "warning", "error"]
ButtonVariant = Literal["primary", "default", "success", "warning", "error"]

# tone -> (confirm button, dismiss button)
BUTTON_VARIANTS: Dict[Tone, Tuple[ButtonVariant, ButtonVariant]] = {
    "default": ("primary", "default"),
    "positive": ("success", "default"),
    "warning": ("warning", "default"),
    "error": ("error", "primary"),
}


class ConfirmModal(ModalScreen[bool]):
    """
    Question with a confirm and an optional dismiss button.
    Resolves True on confirm, False on dismiss or escape.
    """

    BINDINGS = [
        Binding("escape", "answer(False)", "Back", show=False),
    ]

    def __init__(
        self,
        question: str,
        confirm_text: str = "Yes",
        dismiss_text: str = "No",
        tone: Tone = "warning",
    ):
        super().__init__()
        self.question = question
        self.confirm_text = confirm_text
        self.dismiss_text = dismiss_text
        self.tone = tone

    def compose(self) -> ComposeResult:
        confirm_variant, dismiss_variant = BUTTON_VARIANTS[self.tone]
        with Container(id="div-dialog"):
            yield from self.compose_body()
            with Horizontal(id="dialog"):
                if self.dismiss_text:
                    yield Button(
                        self.dismiss_text, variant=dismiss_variant, id="btn-secondary"
                    )
                yield Button(
                    self.confirm_text, variant=confirm_variant, id="btn-primary"
                )

    def compose_body(self) -> ComposeResult:
        yield Label(self.question, id="caption")

    def on_mount(self) -> None:
        # destructive questions start on the safe answer
        if self.tone == "error" and self.dismiss_text:
            self.query_one("#btn-secondary").focus()
        else:
            self.query_one("#btn-primary").focus()

    @on(Button.Pressed, "#btn-primary")
    def handle_confirm(self) -> None:
        self.action_answer(True)

    @on(Button.Pressed, "#btn-secondary")
    def handle_dismiss(self) -> None:
        self.action_answer(False)

    def action_answer(self, answer: bool) -> None:
        self.dismiss(answer)


class LogoutModal(ConfirmModal):
    def __init__(self):
        super().__init__("Are you sure you want to log out?")


class RemoveItemModal(ConfirmModal):
    def __init__(self, product_name: str):
        super().__init__(
            f"Remove {product_name or 'this item'} from your cart?",
            confirm_text="Remove",
            dismiss_text="Keep",
        )


class ClearCartModal(ConfirmModal):
    def __init__(self, item_count: int):
        noun = "item" if item_count == 1 else "items"
        super().__init__(
            f"Remove all {item_count} {noun} from your cart?",
            confirm_text="Clear Cart",
            dismiss_text="Keep",
            tone="error",
        )


def _order_summary(order: Order) -> str:
    rows = [[item.product_name, item.quantity] for item in order.items]
    rows.append(["**Total**", format_price(order.total_amount)])
    return generate_markdown_table(["Product", "Qty"], rows, ["l", "r"])


class CancelOrderModal(ConfirmModal):
    """Shows what is being cancelled before the request goes out."""

    def __init__(self, order: Order):
        super().__init__(
            f"Cancel order #{order.order_number}?",
            confirm_text="Cancel Order",
            dismiss_text="Keep Order",
            tone="error",
        )
        self.order = order

    @override
    def compose_body(self) -> ComposeResult:
        yield Label(self.question, id="caption")
        yield Markdown(
            _order_summary(self.order)
            + "\n\nRefunds are processed within 3-5 business days."
        )


class OrderPlacedModal(ConfirmModal):
    def __init__(self, order: Optional[Order]):
        super().__init__(
            "Order placed successfully!",
            confirm_text="OK",
            dismiss_text="",
            tone="positive",
        )
        self.order = order

    @override
    def compose_body(self) -> ComposeResult:
        yield Label(self.question, id="caption")
        if self.order is None:
            return
        # the delivery date is a client side estimate
        delivery = format_date(expected_delivery(self.order))
        yield Markdown(
            f"Order number: **{self.order.order_number}**  \n"
            f"Expected delivery: {delivery} (estimate)"
            "\n\n" + _order_summary(self.order)
        )


class QuitDialogModal(ConfirmModal):
    def __init__(self):
        super().__init__("Are you sure you want to quit?", tone="error")

    @override
    def action_answer(self, answer: bool) -> None:
        if answer:
            self.post_message(QuitRequestedMessage())
        super().action_answer(answer)
