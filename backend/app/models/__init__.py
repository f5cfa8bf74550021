"""SQLAlchemy models package.

All ORM classes are registered deterministically so mapper configuration
cannot fail at runtime depending on import order.
"""

# Import all model modules to register mapped classes in SQLAlchemy's registry.

from app.models import (  # noqa: F401
    file,
    folder,
    log,
    notification,
    user,
)
from app.models.file import File  # noqa: F401
from app.models.folder import Folder  # noqa: F401
from app.models.log import Log, LogLevel  # noqa: F401
from app.models.notification import Notification  # noqa: F401
from app.models.user import User, UserRole  # noqa: F401
