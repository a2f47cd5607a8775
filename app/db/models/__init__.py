from .common import *  # noqa
from .firm import *  # noqa
from .inventory import *  # noqa
from .party import *  # noqa
from .document import *  # noqa
from .banking import *  # noqa
from .payment import *  # noqa
