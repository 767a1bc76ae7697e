from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from services.session import SessionState
from utils.config import Settings
from utils.logger import get_logger
from utils.messages import (
    CartChangedMessage,
    ModeSwitchedMessage,
    QuitRequestedMessage,
    SessionChangedMessage,
    UserLogoutMessage,
)
from utils.state import AppState
from views.scr_cart import CartScreen
from views.scr_login import LoginScreen
from views.scr_orders import OrdersScreen
from views.scr_products import ProductListScreen

_logger = get_logger(__name__)


class StorefrontApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "products": ProductListScreen,
        "cart": CartScreen,
        "orders": OrdersScreen,
    }

    # browsing is public, these need a signed in user
    MEMBER_MODES = {"cart", "orders"}

    MODE_TITLES = {
        "products": "Products",
        "cart": "Cart",
        "orders": "My Orders",
    }

    CSS = """
    Sidebar {
        dock: left;
        width: 28;
        padding: 0 1;
    }
    #hort-table-control, #hort-buttons {
        height: auto;
    }
    #div-shipping {
        width: 40;
    }
    #input-address {
        height: 5;
    }
    CartLineWidget {
        height: auto;
        padding: 0 1;
    }
    .-invalid {
        border: tall $error;
    }
    """

    state: AppState

    def __init__(self, settings: Settings | None = None):
        super().__init__()
        self.state = AppState(settings or Settings.from_env(), notify=self.notify)
        self.state.session.subscribe(self._on_session_change)

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.start_up()

    async def _on_session_change(self, state: SessionState) -> None:
        self.screen.post_message(
            SessionChangedMessage(self.state.session.is_authenticated)
        )

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        await self.state.session.logout()
        await self.open_mode("products")
        self.screen.post_message(CartChangedMessage())

    @on(QuitRequestedMessage)
    @work
    async def handle_quit(self):
        await self.state.aclose()
        self.exit()

    @work(exclusive=True, group="main-flow")
    async def start_up(self):
        # the only read of the persisted credentials
        if await self.state.session.restore():
            _logger.info(f"Signed in as {self.state.session.user.email}")
        await self.open_mode("products")

    async def ensure_signed_in(self) -> bool:
        """
        Show the login screen unless already signed in. Must run in a worker.
        """
        if self.state.session.is_authenticated:
            return True
        return bool(await self.push_screen_wait(LoginScreen()))

    async def open_mode(self, mode: str) -> None:
        if mode in self.MEMBER_MODES and not await self.ensure_signed_in():
            return
        if mode != self.current_mode:
            self.post_message(ModeSwitchedMessage(self.current_mode, mode))
            await self.switch_mode(mode)


def run():
    app = StorefrontApp()
    app.run()


if __name__ == "__main__":
    run()
