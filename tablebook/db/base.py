from tablebook.db.session import Base
from tablebook.models.booking import BookingRow
from tablebook.models.user import User
