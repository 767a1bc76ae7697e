import re
from datetime import date, datetime
from typing import Dict, List, Literal, Optional, Union

_EMAIL_RE = re.compile(r"\S+@\S+\.\S+")
MIN_PASSWORD_LENGTH = 6


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: List of column headers, or None to use first row as headers.
        rows: List of rows, each a list of strings.
        aligns: List of alignments ('l', 'c', 'r') for each column.
                Defaults to all center ('c').

    Returns:
        str: Markdown formatted table.
    """
    if not rows:
        return ""

    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = list(map(str, headers))
    rows = [[str(cell).replace("|", "\\|") for cell in row] for row in rows]

    num_cols = len(headers)
    if aligns is None:
        aligns = ["c"] * num_cols
    elif len(aligns) != num_cols:
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {
        "l": ":---",
        "c": ":---:",
        "r": "---:",
    }

    header_line = "| " + " | ".join(headers) + " |"
    align_line = "| " + " | ".join(align_map[a] for a in aligns) + " |"
    row_lines = ["| " + " | ".join(row) + " |" for row in rows]

    return "\n".join([header_line, align_line, *row_lines])


def format_price(amount: float) -> str:
    """Rupee amounts with thousands separators, decimals only when present."""
    if float(amount).is_integer():
        return f"₹{int(amount):,}"
    return f"₹{amount:,.2f}"


def format_date(value: Union[date, datetime]) -> str:
    """e.g. 5 Mar 2025"""
    return f"{value.day} {value.strftime('%b %Y')}"


def validate_login_form(email: str, pwd: str) -> Dict[str, str]:
    """
    Field name -> error message, empty when the form is fine.
    """
    errors = {}
    if not email.strip():
        errors["email"] = "Email is required"
    elif not _EMAIL_RE.search(email):
        errors["email"] = "Please enter a valid email address"

    if not pwd.strip():
        errors["password"] = "Password is required"
    elif len(pwd) < MIN_PASSWORD_LENGTH:
        errors["password"] = (
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    return errors


def validate_signup_form(
    first_name: str, last_name: str, email: str, pwd: str
) -> Dict[str, str]:
    errors = {}
    if not first_name.strip():
        errors["first_name"] = "First name is required"
    if not last_name.strip():
        errors["last_name"] = "Last name is required"
    errors.update(validate_login_form(email, pwd))
    return errors
