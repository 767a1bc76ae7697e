from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.events import Key
from textual.widgets import Button, Input, Label, TabbedContent, TabPane

from services.session import SignupProfile
from utils.pure import validate_login_form, validate_signup_form
from views.base_screen import BaseScreen


class LoginScreen(BaseScreen):
    """
    Login / sign up, shown in front of the member only modes and when a guest
    adds to cart. Dismissed with True once signed in, False when backed out of.
    """

    BINDINGS = [
        Binding("escape", "back", "Keep Browsing", show=True),
    ]

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Login", show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-loginscr"):
            with TabPane("Login", id="tab-login"):
                with Vertical(id="div-login"):
                    yield Label("Email")
                    yield Input(placeholder="user@example.com", id="input-login-email")
                    yield Label("Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-login-pwd"
                    )
                    with Horizontal(id="div-login-btns"):
                        yield Button("Keep Browsing", id="btn-back")
                        yield Button("Login", id="btn-login", variant="primary")

            with TabPane("Sign up", id="tab-signup"):
                with Vertical(id="div-reg"):
                    yield Label("First Name")
                    yield Input(placeholder="Jane", id="input-reg-first-name")
                    yield Label("Last Name")
                    yield Input(placeholder="Doe", id="input-reg-last-name")
                    yield Label("Email")
                    yield Input(placeholder="user@example.com", id="input-reg-email")
                    yield Label("Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-reg-pwd"
                    )
                    with Container(id="div-reg-btns"):
                        yield Button("Create Account", id="btn-reg", variant="primary")

    def on_mount(self):
        self.query_one("#input-login-email").focus()

    def action_back(self) -> None:
        self.dismiss(False)

    def on_key(self, event: Key) -> None:
        if event.key == "enter" and self.focused == self.query_one("#input-login-pwd"):
            self.handle_login_submit()
        if event.key == "enter" and self.focused == self.query_one("#input-reg-pwd"):
            self.handle_registration_submit()

    def _mark_invalid(self, errors: dict, field_ids: dict) -> None:
        for field, input_id in field_ids.items():
            widget = self.query_one(input_id, Input)
            if field in errors:
                widget.add_class("-invalid")
            else:
                widget.remove_class("-invalid")

    @on(Input.Changed)
    def handle_input_changed(self, event: Input.Changed) -> None:
        # typing clears both the field's mark and any failed login
        event.input.remove_class("-invalid")
        if self.app.state.session.error:
            self.run_worker(self.app.state.session.clear_error())

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        session = self.app.state.session
        if session.busy:
            return

        email = self.query_one("#input-login-email", Input).value.strip()
        pwd = self.query_one("#input-login-pwd", Input).value

        errors = validate_login_form(email, pwd)
        self._mark_invalid(
            errors, {"email": "#input-login-email", "password": "#input-login-pwd"}
        )
        if errors:
            self.notify(next(iter(errors.values())), severity="error")
            return

        login_btn = self.query_one("#btn-login", Button)
        login_btn.disabled = True
        try:
            result = await session.login(email, pwd)
        finally:
            login_btn.disabled = False

        if result:
            self.dismiss(True)
        else:
            input_login_pwd = self.query_one("#input-login-pwd", Input)
            input_login_pwd.focus()
            input_login_pwd.add_class("-invalid")

    @on(Button.Pressed, "#btn-reg")
    @work(exclusive=True)
    async def handle_registration_submit(self) -> None:
        session = self.app.state.session
        if session.busy:
            return

        first_name = self.query_one("#input-reg-first-name", Input).value.strip()
        last_name = self.query_one("#input-reg-last-name", Input).value.strip()
        email = self.query_one("#input-reg-email", Input).value.strip()
        pwd = self.query_one("#input-reg-pwd", Input).value

        errors = validate_signup_form(first_name, last_name, email, pwd)
        self._mark_invalid(
            errors,
            {
                "first_name": "#input-reg-first-name",
                "last_name": "#input-reg-last-name",
                "email": "#input-reg-email",
                "password": "#input-reg-pwd",
            },
        )
        if errors:
            self.notify(next(iter(errors.values())), severity="error")
            return

        reg_btn = self.query_one("#btn-reg", Button)
        reg_btn.disabled = True
        try:
            result = await session.signup(
                SignupProfile(first_name, last_name, email, pwd)
            )
        finally:
            reg_btn.disabled = False

        if result:
            self.dismiss(True)

    @on(Button.Pressed, "#btn-back")
    def handle_back(self) -> None:
        self.action_back()
