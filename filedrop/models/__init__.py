from filedrop.models.database import Base
from filedrop.models.file import File
from filedrop.models.user import Account, User
from filedrop.models.verification_token import VerificationToken

__all__ = ["Base", "File", "User", "Account", "VerificationToken"]
