"""
Operator user model and data access functions.
Handles operator authentication, creation and Flask-Login integration.
"""

from werkzeug.security import generate_password_hash, check_password_hash

from database import get_db
from utils.datetime_helpers import get_now, to_storage

ROLE_ADMIN = 'admin'
OPERATOR_ROLES = (ROLE_ADMIN,)


class User:
    """
    User class for Flask-Login integration.
    Wraps database row dictionary with required Flask-Login properties.
    """

    def __init__(self, user_dict):
        """
        Initialize User from database row.

        Args:
            user_dict: Dictionary with user data from database
        """
        self.id = user_dict['id']
        self.username = user_dict['username']
        self.email = user_dict['email']
        self.full_name = user_dict['full_name']
        self.role = user_dict['role']
        self.active = user_dict['active']
        self.created_at = user_dict['created_at']
        self.last_login = user_dict.get('last_login')

    @property
    def is_authenticated(self):
        """Required by Flask-Login."""
        return True

    @property
    def is_active(self):
        """Required by Flask-Login."""
        return self.active == 1

    @property
    def is_anonymous(self):
        """Required by Flask-Login."""
        return False

    @property
    def is_operator(self):
        """True if the user may perform operator actions."""
        return self.role in OPERATOR_ROLES

    def get_id(self):
        """Required by Flask-Login. Returns user ID as unicode string."""
        return str(self.id)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'full_name': self.full_name,
            'role': self.role,
            'last_login': self.last_login
        }


def get_user_by_id(user_id: int) -> dict:
    """
    Get user by ID.

    Args:
        user_id: User ID

    Returns:
        User dict or None if not found
    """
    db = get_db()
    row = db.execute('SELECT * FROM users WHERE id = ?', (user_id,)).fetchone()
    return dict(row) if row else None


def get_user_by_username(username: str) -> dict:
    """
    Get user by username.

    Args:
        username: Username to search for

    Returns:
        User dict or None if not found
    """
    db = get_db()
    row = db.execute('SELECT * FROM users WHERE username = ?', (username,)).fetchone()
    return dict(row) if row else None


def create_user(username: str, email: str, password: str, full_name: str = None,
                role: str = ROLE_ADMIN) -> int:
    """
    Create new operator with hashed password.

    Args:
        username: Unique username
        email: Unique email
        password: Plain text password (will be hashed)
        full_name: User's full name
        role: Role name

    Returns:
        New user ID

    Raises:
        sqlite3.IntegrityError if username or email already exists
    """
    db = get_db()
    cursor = db.execute('''
        INSERT INTO users (username, email, password_hash, full_name, role, created_at)
        VALUES (?, ?, ?, ?, ?, ?)
    ''', (username, email, generate_password_hash(password), full_name, role,
          to_storage(get_now())))
    db.commit()
    return cursor.lastrowid


def update_last_login(user_id: int) -> None:
    """Update user's last login timestamp."""
    db = get_db()
    db.execute('UPDATE users SET last_login = ? WHERE id = ?',
               (to_storage(get_now()), user_id))
    db.commit()


def check_password(user_dict: dict, password: str) -> bool:
    """
    Verify password against stored hash.

    Args:
        user_dict: User dictionary with password_hash
        password: Plain text password to check

    Returns:
        True if password matches
    """
    return check_password_hash(user_dict['password_hash'], password)
