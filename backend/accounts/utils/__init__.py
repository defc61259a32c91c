from .config import settings
from .logger import setup_logging
from .auth import verify_admin_token, verify_crm_token

__all__ = ["settings", "setup_logging", "verify_admin_token", "verify_crm_token"]
