from polar_toolkit.services.account import AccountService
from polar_toolkit.services.auth import AuthService
from polar_toolkit.services.download import DownloadService

__all__ = ['AccountService', 'AuthService', 'DownloadService']
