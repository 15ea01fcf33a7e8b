from portfolio_api.models.portfolio import Instrument, Portfolio
from portfolio_api.models.user import Token, User

__all__ = ["Instrument", "Portfolio", "Token", "User"]
