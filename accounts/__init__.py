#Identity as the engine consumes it: a Caller with a Role, and the token check
#that produces one.

from .models import Caller, Role
from .auth import TokenAuthenticator

__all__ = [
    "Caller",
    "Role",
    "TokenAuthenticator",
]
