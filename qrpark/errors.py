class ParkingError(Exception):
    """Base class for failures the parking services report to their caller."""

    def __init__(self, message: str, key: str = None):
        super().__init__(message)
        self.message = message
        self.key = key

class UserNotFound(ParkingError):
    def __init__(self, phone: str):
        super().__init__(f"User {phone} not found.", phone)

class UserAlreadyExists(ParkingError):
    def __init__(self, phone: str):
        super().__init__(f"User {phone} already exists.", phone)

class InsufficientBalance(ParkingError):
    def __init__(self, phone: str, balance: int):
        super().__init__(
            f"User {phone} has no parking minutes left (balance {balance}). Buy minutes before entering.",
            phone,
        )
        self.balance = balance

class SessionAlreadyActive(ParkingError):
    def __init__(self, phone: str, session_id: str):
        super().__init__(f"User {phone} already has an active session ({session_id}).", phone)
        self.session_id = session_id

class NoActiveSession(ParkingError):
    def __init__(self, phone: str):
        super().__init__(f"User {phone} has no active session.", phone)

class SessionNotFound(ParkingError):
    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} not found.", session_id)

class UnknownPackage(ParkingError):
    def __init__(self, package_id: str):
        super().__init__(f"Unknown minute package: {package_id}.", package_id)
