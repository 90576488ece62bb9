import streamlit as st
import sqlite3
import hashlib
import hmac
import secrets
import json
import logging
from contextlib import closing
from datetime import datetime, timedelta
from pathlib import Path

from src.billing.config import load_config

logger = logging.getLogger(__name__)

CONFIG = load_config()
TIMEZONE = CONFIG.tz

# Database path - shared with the invoice database directory
USER_DB_PATH = CONFIG.user_db_path

MAX_FAILED_ATTEMPTS = 5
LOCKOUT_DURATION = timedelta(hours=1)
PBKDF2_ITERATIONS = 200_000


def init_user_database(db_path=None):
    """Initialize the user database with required tables"""
    db_path = Path(db_path or USER_DB_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with closing(sqlite3.connect(db_path)) as conn:
        cursor = conn.cursor()

        # Users table
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                username TEXT UNIQUE NOT NULL,
                password_hash TEXT NOT NULL,
                role TEXT DEFAULT 'user',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                last_login TIMESTAMP,
                failed_attempts INTEGER DEFAULT 0,
                locked_until TIMESTAMP,
                is_active BOOLEAN DEFAULT 1
            )
        ''')

        # Security events table
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS security_events (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER,
                event_type TEXT NOT NULL,
                description TEXT,
                timestamp TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (user_id) REFERENCES users (id)
            )
        ''')

        # Business activities table
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS business_activities (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER,
                username TEXT,
                activity_type TEXT NOT NULL,
                target_invoice_id TEXT,
                target_invoice_no TEXT,
                new_values TEXT,
                success BOOLEAN DEFAULT 1,
                error_message TEXT,
                description TEXT,
                timestamp TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (user_id) REFERENCES users (id)
            )
        ''')

        conn.commit()


def hash_password(password, salt=None):
    """Hash a password with salted PBKDF2-SHA256"""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac('sha256', password.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt}${digest.hex()}"


def verify_password(password, password_hash):
    """Verify a password against its hash"""
    try:
        _, iterations, salt, expected = password_hash.split('$')
        digest = hashlib.pbkdf2_hmac('sha256', password.encode(), salt.encode(), int(iterations))
    except ValueError:
        return False
    return hmac.compare_digest(digest.hex(), expected)


def _now():
    return datetime.now(TIMEZONE)


def log_security_event(user_id, event_type, description, db_path=None):
    """Log a security event"""
    try:
        with closing(sqlite3.connect(db_path or USER_DB_PATH)) as conn:
            conn.execute('''
                INSERT INTO security_events (user_id, event_type, description, timestamp)
                VALUES (?, ?, ?, ?)
            ''', (user_id, event_type, description, _now().strftime('%Y-%m-%d %H:%M:%S')))
            conn.commit()
    except sqlite3.Error as e:
        logger.error(f"Error logging security event: {e}")


def log_business_activity(user_id, username, activity_type, target_invoice_id=None,
                          target_invoice_no=None, new_values=None, success=True,
                          error_message=None, description=None, db_path=None):
    """Log a business activity, e.g. INVOICE_CREATED or INVOICE_SAVE_FAILED"""
    try:
        new_values_json = json.dumps(new_values) if new_values is not None else None

        with closing(sqlite3.connect(db_path or USER_DB_PATH)) as conn:
            conn.execute('''
                INSERT INTO business_activities
                (user_id, username, activity_type, target_invoice_id, target_invoice_no,
                 new_values, success, error_message, description, timestamp)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ''', (user_id, username, activity_type, target_invoice_id, target_invoice_no,
                  new_values_json, success, error_message, description,
                  _now().strftime('%Y-%m-%d %H:%M:%S')))
            conn.commit()
    except sqlite3.Error as e:
        logger.error(f"Error logging business activity: {e}")


def get_business_activities(limit=100, activity_type=None, username=None, db_path=None):
    """Get business activities, most recent first"""
    query = '''
        SELECT id, user_id, username, activity_type, target_invoice_id, target_invoice_no,
               new_values, success, error_message, description, timestamp
        FROM business_activities WHERE 1 = 1
    '''
    params = []
    if activity_type and activity_type != "All":
        query += " AND activity_type = ?"
        params.append(activity_type)
    if username:
        query += " AND username LIKE ?"
        params.append(f"%{username}%")
    query += " ORDER BY timestamp DESC, id DESC LIMIT ?"
    params.append(limit)

    with closing(sqlite3.connect(db_path or USER_DB_PATH)) as conn:
        conn.row_factory = sqlite3.Row
        activities = [dict(row) for row in conn.execute(query, params).fetchall()]

    for activity in activities:
        if activity['new_values']:
            activity['new_values'] = json.loads(activity['new_values'])
    return activities


def check_authentication():
    """Check if user is authenticated and return user info"""
    init_user_database()
    return st.session_state.get('user_info')


def authenticate_user(username, password, db_path=None):
    """
    Authenticate a user with username and password

    Returns:
        (True, user_info dict) on success, (False, message) otherwise
    """
    db_path = Path(db_path or USER_DB_PATH)
    with closing(sqlite3.connect(db_path)) as conn:
        cursor = conn.cursor()

        # Check if user exists and is not blocked
        cursor.execute('''
            SELECT id, password_hash, role, failed_attempts, locked_until, is_active
            FROM users
            WHERE username = ?
        ''', (username,))

        result = cursor.fetchone()

        if not result:
            log_security_event(None, 'LOGIN_FAILED', f'Login attempt with non-existent username: {username}', db_path)
            return False, "Invalid username or password"

        user_id, password_hash, role, failed_attempts, locked_until, is_active = result

        if not is_active:
            log_security_event(user_id, 'LOGIN_FAILED', 'Login attempt on inactive account', db_path)
            return False, "Account is inactive"

        if locked_until:
            locked_until_dt = datetime.fromisoformat(locked_until)
            if _now() < locked_until_dt:
                log_security_event(user_id, 'LOGIN_FAILED', 'Login attempt on locked account', db_path)
                return False, f"Account is locked until {locked_until_dt.strftime('%Y-%m-%d %H:%M:%S')}"

        if verify_password(password, password_hash):
            # Reset failed attempts and update last login
            cursor.execute('''
                UPDATE users
                SET failed_attempts = 0, locked_until = NULL, last_login = ?
                WHERE id = ?
            ''', (_now().isoformat(), user_id))
            conn.commit()

            log_security_event(user_id, 'LOGIN_SUCCESS', 'User logged in successfully', db_path)
            return True, {
                'user_id': user_id,
                'username': username,
                'role': role
            }

        failed_attempts += 1
        lock_until = None

        # Lock account after 5 failed attempts for 1 hour
        if failed_attempts >= MAX_FAILED_ATTEMPTS:
            lock_until = (_now() + LOCKOUT_DURATION).isoformat()

        cursor.execute('''
            UPDATE users
            SET failed_attempts = ?, locked_until = ?
            WHERE id = ?
        ''', (failed_attempts, lock_until, user_id))
        conn.commit()

    log_security_event(user_id, 'LOGIN_FAILED', f'Failed login attempt #{failed_attempts}', db_path)

    if lock_until:
        return False, f"Account locked for 1 hour due to {failed_attempts} failed attempts"
    return False, f"Invalid password. {MAX_FAILED_ATTEMPTS - failed_attempts} attempts remaining before lockout"


def create_user(username, password, role='user', created_by_user_id=None, db_path=None):
    """Create a new user"""
    db_path = Path(db_path or USER_DB_PATH)
    if not username or not username.strip():
        return False, "Username is required"
    if len(password or "") < 6:
        return False, "Password must be at least 6 characters long"

    try:
        with closing(sqlite3.connect(db_path)) as conn:
            cursor = conn.cursor()

            cursor.execute('SELECT id FROM users WHERE username = ?', (username,))
            if cursor.fetchone():
                return False, "Username already exists"

            cursor.execute('''
                INSERT INTO users (username, password_hash, role)
                VALUES (?, ?, ?)
            ''', (username, hash_password(password), role))

            user_id = cursor.lastrowid
            conn.commit()
    except sqlite3.Error as e:
        return False, f"Error creating user: {str(e)}"

    log_business_activity(created_by_user_id, username, 'USER_CREATED',
                          description=f'New user "{username}" created with role "{role}"',
                          db_path=db_path)

    return True, {
        'user_id': user_id,
        'username': username,
        'role': role
    }


def register_user(username, password, confirm_password, db_path=None):
    """
    Self-service sign up: create a regular account after checking the
    password confirmation.

    Returns:
        (True, user_info dict) on success, (False, message) otherwise
    """
    if password != confirm_password:
        return False, "Passwords do not match"

    success, result = create_user((username or "").strip(), password, role='user', db_path=db_path)
    if success:
        log_security_event(result['user_id'], 'USER_REGISTERED', 'Account created from the sign up form', db_path)
    return success, result


def show_login_form():
    """Display the login form, with a switch to the sign up form"""
    mode = st.radio("Mode", ["Login", "Sign Up"], horizontal=True, label_visibility="collapsed")
    if mode == "Sign Up":
        show_signup_form()
        return

    st.header("🔐 Login to Billing")

    with st.form("login_form"):
        username = st.text_input("👤 Username", placeholder="Enter your username")
        password = st.text_input("🔒 Password", type="password", placeholder="Enter your password")

        login_button = st.form_submit_button("🚀 Login", use_container_width=True)

        if login_button:
            if not username or not password:
                st.error("❌ Please enter both username and password")
            else:
                with st.spinner("Authenticating..."):
                    success, result = authenticate_user(username, password)

                if success:
                    st.session_state['user_info'] = result
                    st.success(f"✅ Welcome back, {result['username']}!")
                    st.rerun()
                else:
                    st.error(f"❌ {result}")


def show_signup_form():
    """Display the sign up form; a new account is logged in straight away"""
    st.header("📝 Create an Account")

    with st.form("signup_form"):
        username = st.text_input("👤 Username", placeholder="Choose a username")
        password = st.text_input("🔒 Password", type="password", placeholder="At least 6 characters")
        confirm_password = st.text_input("🔒 Confirm Password", type="password")

        if st.form_submit_button("✅ Sign Up", use_container_width=True):
            init_user_database()
            success, result = register_user(username, password, confirm_password)
            if success:
                st.session_state['user_info'] = result
                st.success(f"✅ Account created. Welcome, {result['username']}!")
                st.rerun()
            else:
                st.error(f"❌ {result}")


def show_user_info():
    """Display user information in sidebar"""
    user_info = st.session_state.get('user_info')
    if user_info:
        st.sidebar.markdown("---")
        st.sidebar.markdown("**👤 User Information**")
        st.sidebar.write(f"**Username:** {user_info['username']}")
        st.sidebar.write(f"**Role:** {user_info['role'].title()}")


def show_logout_button():
    """Display logout button in sidebar"""
    st.sidebar.markdown("---")
    if st.sidebar.button("🚪 Logout", use_container_width=True, key="logout_button"):
        user_info = st.session_state.get('user_info')
        if user_info:
            log_security_event(user_info['user_id'], 'LOGOUT', 'User logged out')

        # The working bill belongs to the logged-in user; drop it with the session
        for key in ('user_info', 'billing_session', 'current_invoice', 'bill_error', 'history_invoice_id'):
            if key in st.session_state:
                del st.session_state[key]

        st.success("✅ You have been logged out successfully!")
        st.rerun()
