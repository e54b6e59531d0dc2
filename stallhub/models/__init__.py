# StallHub Database Models
# Import all models here for SQLAlchemy discovery

from stallhub.models.event import Event            # noqa
from stallhub.models.stall_type import StallType   # noqa
from stallhub.models.stall import Stall, StallStatus  # noqa
from stallhub.models.booking import Booking        # noqa
