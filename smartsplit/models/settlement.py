from typing import Optional

from sqlmodel import SQLModel


class Settlement(SQLModel):
    """One proposed payment: `from_id` pays `to_id` the given amount."""
    from_id: int
    to_id: int
    amount: float
    from_name: Optional[str] = None
    to_name: Optional[str] = None
