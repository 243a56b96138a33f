# healthnet/utils/ids.py
import secrets
import string

ID_ALPHABET = string.ascii_uppercase + string.digits
ID_LENGTH = 10

# Business id prefixes
FACILITY = "HO"
PATIENT = "PT"
DOCTOR = "DL"
ADMIN = "AM"
DIAGNOSIS = "DIAG"
LAB_RESULT = "LAB"
ASSIGNMENT = "ASG"
APPOINTMENT = "APT"
QR_CODE = "QR"
FILE = "FILE"


def generate_id(prefix: str, length: int = ID_LENGTH) -> str:
    """Generate a business id such as `PT-7Q2M0ZK4TA`."""
    return f"{prefix}-" + "".join(secrets.choice(ID_ALPHABET) for _ in range(length))


def generate_unique_id(db, column, prefix: str, attempts: int = 5) -> str:
    """Generate an id that does not exist yet in `column` (a mapped attribute)."""
    for _ in range(attempts):
        candidate = generate_id(prefix)
        if db.query(column).filter(column == candidate).first() is None:
            return candidate
    raise RuntimeError(f"Could not generate a unique {prefix} id")
