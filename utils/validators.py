from typing import Optional, Union

from digital_library.book import Status
from digital_library.storage import DELIMITER, LINE_BREAKS


def parse_status(raw: Union[str, int, None]) -> Status:
    """Accept a status tag (1-3) or a name such as 'read' / 'Wishlist'.
    Raises ValueError for anything else.
    """
    if raw is None:
        raise ValueError("Status is required.")
    if isinstance(raw, int):
        return Status(raw)
    s = raw.strip()
    if s.isdigit():
        try:
            return Status(int(s))
        except ValueError:
            pass
    elif s.upper() in Status.__members__:
        return Status[s.upper()]
    choices = ", ".join(f"{st.value}={st.label}" for st in Status)
    raise ValueError(f"Invalid status '{raw}'. Use one of: {choices}.")


class TextValidator:
    """Title/author checks applied before anything reaches the library."""

    @staticmethod
    def _is_storable(text: Optional[str]) -> bool:
        if text is None:
            return False
        t = text.strip()
        if not t:
            return False
        # the data file has no escaping and holds one book per line
        return not any(c in t for c in (DELIMITER,) + LINE_BREAKS)

    @staticmethod
    def validate_title(title: Optional[str]) -> bool:
        return TextValidator._is_storable(title)

    @staticmethod
    def validate_author(author: Optional[str]) -> bool:
        return TextValidator._is_storable(author)
