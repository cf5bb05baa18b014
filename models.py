from datetime import date, datetime

from flask_login import UserMixin
from flask_sqlalchemy import SQLAlchemy
from werkzeug.security import generate_password_hash, check_password_hash

from utils import parse_date, parse_datetime

db = SQLAlchemy()

PRIORITIES = ('Alta', 'Media', 'Bassa')

# The firm profile is a singleton row
FIRM_PROFILE_ID = 1


def _serialize(value):
    # datetimes are stored as naive UTC
    if isinstance(value, datetime):
        return value.isoformat(timespec='milliseconds') + 'Z'
    if isinstance(value, date):
        return value.isoformat()
    return value


class StorageRow:
    """Row <-> dict conversion in storage (snake_case) convention.

    Parent references are plain indexed integers: relationships are resolved
    by re-querying the child table, and nothing cascades on delete.
    """

    # Columns never exposed through to_dict()
    private_columns = ()

    def to_dict(self):
        return {
            column.name: _serialize(getattr(self, column.key))
            for column in self.__table__.columns
            if column.name not in self.private_columns
        }

    @classmethod
    def coerce(cls, row):
        """Parse ISO strings for date/datetime columns; other columns pass as-is.

        Raises ValueError for a date/datetime value that is neither an ISO
        string nor a date.
        """
        columns = cls.__table__.columns
        out = {}
        for key, value in row.items():
            column = columns.get(key)
            if column is not None and isinstance(column.type, (db.DateTime, db.Date)) and value is not None:
                if not isinstance(value, (str, date)):
                    raise ValueError(f"{key}: expected an ISO date, got {value!r}")
                if isinstance(column.type, db.DateTime):
                    value = parse_datetime(value)
                else:
                    value = parse_date(value)
            out[key] = value
        return out


class User(UserMixin, StorageRow, db.Model):
    """Login identity; exposed as the `profiles` resource without the hash."""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    name = db.Column(db.String(120), nullable=False)
    role = db.Column(db.String(20), default='user')  # 'admin' | 'user'
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    private_columns = ('password_hash',)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)


class Client(StorageRow, db.Model):
    __tablename__ = 'clients'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(120))
    phone = db.Column(db.String(40))
    taxcode = db.Column(db.String(32))
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    priority = db.Column(db.String(10), default='Media')


class Practice(StorageRow, db.Model):
    """A legal matter handled for a client."""
    __tablename__ = 'practices'

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, nullable=False, index=True)
    lawyer_id = db.Column(db.Integer, nullable=True, index=True)
    title = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(100))
    status = db.Column(db.String(20), default='Aperta')  # any status may move to any other
    value = db.Column(db.Float, default=0)  # disputed value
    opened_at = db.Column(db.Date)
    notes = db.Column(db.Text)
    priority = db.Column(db.String(10), default='Media')
    fee = db.Column(db.Float, default=0)  # agreed fee
    paid_amount = db.Column(db.Float, default=0)


class Lawyer(StorageRow, db.Model):
    __tablename__ = 'lawyers'

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(50), nullable=False)
    last_name = db.Column(db.String(50), nullable=False, index=True)
    email = db.Column(db.String(120))
    phone = db.Column(db.String(40))
    specialization = db.Column(db.String(120))
    photo_url = db.Column(db.Text)  # data URL
    billing_type = db.Column(db.String(10), default='Oraria')
    billing_rate = db.Column(db.Float, default=0)


class Document(StorageRow, db.Model):
    __tablename__ = 'documents'

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, nullable=False, index=True)
    practice_id = db.Column(db.Integer, nullable=True, index=True)
    name = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(100))  # MIME type
    data_url = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)


class Reminder(StorageRow, db.Model):
    """Reminders have no completion state: they are deleted, not marked done."""
    __tablename__ = 'reminders'

    id = db.Column(db.Integer, primary_key=True)
    practice_id = db.Column(db.Integer, nullable=True, index=True)
    title = db.Column(db.String(255), nullable=False)
    due_date = db.Column(db.Date, nullable=False, index=True)
    priority = db.Column(db.String(10), default='Media')


class Letter(StorageRow, db.Model):
    __tablename__ = 'letters'

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, nullable=False, index=True)
    subject = db.Column(db.String(255))
    body = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)


class Quote(StorageRow, db.Model):
    __tablename__ = 'quotes'

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, nullable=False, index=True)
    practice_title = db.Column(db.String(255))
    practice_type = db.Column(db.String(100))
    practice_notes = db.Column(db.Text)
    fee = db.Column(db.Float, default=0)
    cpa = db.Column(db.Float, default=0)
    vat = db.Column(db.Float, default=0)
    total = db.Column(db.Float, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)


class TimeEntry(StorageRow, db.Model):
    """Append-only hours ledger for a practice."""
    __tablename__ = 'time_entries'

    id = db.Column(db.Integer, primary_key=True)
    practice_id = db.Column(db.Integer, nullable=False, index=True)
    date = db.Column(db.Date, nullable=False)
    hours = db.Column(db.Float, nullable=False)
    description = db.Column(db.Text)


class FirmProfile(StorageRow, db.Model):
    __tablename__ = 'firm_profile'

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    name = db.Column(db.String(200))
    address = db.Column(db.String(255))
    vat_number = db.Column(db.String(32))
    email = db.Column(db.String(120))
    phone = db.Column(db.String(40))
    logo_url = db.Column(db.Text)  # data URL
