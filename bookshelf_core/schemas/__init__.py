"""
Bookshelf schema definitions

The schemas are split into several groups:
 * immutable entity records (``Author``, ``Book``) and their compact
   references as handed out by the repositories
 * payloads (``AuthorPayload``, ``BookPayload``) holding decoded request
   bodies before they are merged into entity records
 * views (``BookListView``, ``AuthorDetailView`` and so on) defining which
   attributes appear in which representation and since which API version
 * error and miscellaneous schemas used by the API layer

This package also contains the ``config`` module, but it's not
exported by default, since it's currently only used internally.
"""

from .bases import *
from .errors import *
from .extra import *
from .views import *
