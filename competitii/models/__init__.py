from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .draw import Draw, DrawWinner  # noqa: F401
from .participant import Participant  # noqa: F401
from .referral import Referral  # noqa: F401

__all__ = [
    "Base",
    "Draw",
    "DrawWinner",
    "Participant",
    "Referral",
]
