"""ORM models; importing this package registers every table on ``Base.metadata``."""
from mutual_aid.models.user import User, Role  # noqa: F401
from mutual_aid.models.request import HelpRequest, RequestStatus, HelpCategory  # noqa: F401
from mutual_aid.models.response import VolunteerResponse  # noqa: F401
