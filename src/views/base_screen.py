from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import ScreenResume
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from utils.messages import (
    CartChangedMessage,
    SessionChangedMessage,
    UserLogoutMessage,
)
from utils.pure import format_price, generate_markdown_table
from views.modal_dialog import LogoutModal, QuitDialogModal


class Sidebar(Container):
    init_mode = ""

    def compose(self) -> ComposeResult:
        yield Label("User Info", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Button("Log out", id="btn-session", variant="error")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    async def on_mount(self):
        self.init_mode = self.app.current_mode
        await self.refresh_user_info()

        list_menu: ListView = self.query_one("#list-menu")
        await list_menu.clear()
        await list_menu.extend(
            [
                ListItem(Label(v), id="list-menu-item-" + k)
                for k, v in self.app.MODE_TITLES.items()
            ]
        )
        self.highlight_item(self.init_mode)

    async def refresh_user_info(self) -> None:
        user = self.app.state.session.user
        session_btn = self.query_one("#btn-session", Button)
        if user is None:
            await self.query_one(Markdown).update("*Browsing as guest*")
            session_btn.label = "Sign in"
            session_btn.variant = "primary"
            return

        cart = self.app.state.cart
        table_rows = [
            ["Name", user.full_name],
            ["Email", user.email],
            ["Cart", f"{cart.total_items} items ({format_price(cart.total_amount)})"],
        ]
        md_table_str = generate_markdown_table(None, table_rows, ["l", "l"])
        await self.query_one(Markdown).update(md_table_str)
        session_btn.label = "Log out"
        session_btn.variant = "error"

    @on(ListView.Selected)
    @work(exclusive=True, group="menu")
    async def handle_menu_selected(self, event: ListView.Selected):
        selected_mode = event.item.id.removeprefix("list-menu-item-")
        self.highlight_item(self.init_mode)
        # cart and orders ask for a login first
        await self.app.open_mode(selected_mode)

    @on(Button.Pressed, "#btn-session")
    @work()
    async def handle_session_button(self):
        if not self.app.state.session.is_authenticated:
            await self.app.ensure_signed_in()
            return
        if not await self.app.push_screen_wait(LogoutModal()):
            return

        self.app.post_message(UserLogoutMessage())

    def highlight_item(self, mode_str: str):
        list_menu = self.query_one("#list-menu")
        for item in list_menu.children:
            item.highlighted = item.id == "list-menu-item-" + mode_str


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, sidebar, and keybindings.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    def __init__(self):
        super().__init__()

        self.configure()

    def configure(
        self,
        header_sub_title: str = "Storefront",
        show_sidebar: bool = True,
    ) -> None:
        """
        configure behavior of the base screen
        """
        self.app.title = "Storefront"
        self.sub_title = header_sub_title
        for k, v in self.app.MODES.items():
            if isinstance(self, v) and k in self.app.MODE_TITLES:
                self.sub_title = self.app.MODE_TITLES[k]

        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    @on(SessionChangedMessage)
    @on(CartChangedMessage)
    @on(ScreenResume)
    async def refresh_sidebar(self):
        for sidebar in self.query(Sidebar):
            await sidebar.refresh_user_info()

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())
