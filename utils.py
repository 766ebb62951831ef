import logging
import os
import uuid
from datetime import datetime, timezone

from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif'}


def utcnow() -> datetime:
    """Naive UTC timestamp, the form SQLite hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def parse_float(s):
    """Parse a form value like '2,5' or '2.5'; empty or invalid -> None."""
    if s is None:
        return None
    if isinstance(s, (int, float)):
        return float(s)
    s = str(s).strip().replace(",", ".")
    if not s:
        return None
    try:
        return float(s)
    except ValueError:
        return None


def parse_datetime(value):
    if value is None or isinstance(value, datetime):
        return value
    dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def isoformat(value):
    return value.isoformat() if value else None


def allowed_file(filename):
    """Check if the file has an allowed extension."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def handle_file_upload(file, upload_folder, prefix=None):
    """Save uploaded file to upload folder and return the file path, or None."""
    if file and file.filename and allowed_file(file.filename):
        filename = secure_filename(file.filename)
        if prefix:
            filename = f"{secure_filename(prefix)}_{filename}"
        os.makedirs(upload_folder, exist_ok=True)
        filepath = os.path.join(upload_folder, filename)
        file.save(filepath)
        return filepath
    if file and file.filename:
        logger.warning("Rejected upload %r: allowed formats are png, jpg, jpeg, gif", file.filename)
    return None
