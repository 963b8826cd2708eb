"""Application-wide constants."""


class SessionStatus:
    """Session status constants."""
    WAITING = "waiting"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    EXPIRED = "expired"

    ALL = (WAITING, CONNECTING, CONNECTED, DISCONNECTED, EXPIRED)
    TERMINAL = (DISCONNECTED, EXPIRED)

    # Lifecycle order; a session never moves to a lower rank
    RANK = {WAITING: 0, CONNECTING: 1, CONNECTED: 2, DISCONNECTED: 3, EXPIRED: 3}


class ActivityType:
    """Audit log activity types."""
    SESSION_CREATED = "session_created"
    CLIENT_JOINED = "client_joined"
    HOST_CONNECTED = "host_connected"
    CONTROL_STARTED = "control_started"
    CONTROL_ENDED = "control_ended"
    CLIPBOARD_SYNC = "clipboard_sync"
    DISCONNECTED = "disconnected"
    RECONNECTED = "reconnected"
    SESSION_ENDED = "session_ended"
    CLIENT_DISCONNECTED = "client_disconnected"
    SESSION_EXPIRED = "session_expired"

    # Activities either party may report while a session is live
    IN_SESSION = (CONTROL_STARTED, CONTROL_ENDED, CLIPBOARD_SYNC, RECONNECTED)


class NotificationKind:
    START = "start"
    END = "end"


class SignalingRole:
    HOST = "host"
    CLIENT = "client"


class UserRole:
    USER = "user"
    ADMIN = "admin"


# Session configuration
MIN_SESSION_MINUTES = 5
MAX_SESSION_MINUTES = 480
MAX_CALENDAR_SESSION_MINUTES = 1440

SESSION_ID_BYTES = 12  # 24 hex characters
SESSION_PASSWORD_BYTES = 4  # 8 hex characters

EXPIRY_SWEEP_MINUTES = 5  # Cadence of the expired-session sweep
