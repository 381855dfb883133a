# Imported for side effects: every model must be mapped before the first query.
from nss_portal.api.users.models import *
from nss_portal.api.events.models import *
