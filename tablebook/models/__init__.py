from tablebook.models.booking import BookingRow
from tablebook.models.user import User
