from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the user confirmed logging out
    """

    bubble = True


class SessionChangedMessage(Message):
    """
    Sent to the active screen after every session transition (login, signup,
    logout, restore), so the sidebar can refresh. Does not bubble back to the app.
    """

    bubble = False

    def __init__(self, authenticated: bool) -> None:
        super().__init__()
        self.authenticated = authenticated


class CartChangedMessage(Message):
    """
    Fired after any cart mutation (product list add, cart screen edits, checkout)
    Will trigger a refresh of cart screen and the in-cart column of the product list

    If posted from outside CartScreen, make sure to post at App level
    """

    bubble = True


class NewOrderMessage(Message):
    """
    Fired when a new order is placed.
    Listened to by the orders screen
    """

    bubble = True


class ModeSwitchedMessage(Message):
    """
    fired whenever switch_mode is called
    must be fired from app level
    """

    bubble = True

    def __init__(self, old_mode: str, new_mode: str) -> None:
        super().__init__()
        self.old_mode = old_mode
        self.new_mode = new_mode
