from .users import User, ADMIN_USERNAME
from .cards import Card
from .settings import CompanySettings, AppSettings
from .counts import CardCounts

__all__ = [
    'User', 'ADMIN_USERNAME',
    'Card',
    'CompanySettings', 'AppSettings',
    'CardCounts',
]
