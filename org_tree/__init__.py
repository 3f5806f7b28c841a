from .dom import *
from .errors import *
from .input import *
from .org_tree import *
from .timestamp import *
from .types import *
from .utils import *
