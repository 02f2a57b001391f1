# Import every model here so Alembic autogenerate can discover them.
# venue must be registered BEFORE anything that FK-references it.

from venue_availability.models.venue import Venue                    # noqa: F401
from venue_availability.models.venue_blockout import VenueBlockout   # noqa: F401
from venue_availability.models.booking import Booking                # noqa: F401
