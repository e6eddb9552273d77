from silver_admin.core.config import settings
from silver_admin.core.database import get_db, Base, get_db_session
from silver_admin.core.security import (
    hash_password,
    verify_password,
    create_access_token,
    create_refresh_token,
    decode_token,
    TokenKind,
)
