import os
import re
import time

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def sanitize_filename(filename):
    """Replace anything but letters, digits, dots and dashes with underscores."""
    return _UNSAFE_CHARS.sub("_", filename or "file")


def save_upload(data, original_name, upload_folder, user_id):
    """
    Write uploaded bytes to <upload_folder>/<user_id>/<ms timestamp>-<name>.
    Returns the storage path relative to upload_folder.
    """
    user_dir = os.path.join(upload_folder, str(user_id))
    os.makedirs(user_dir, exist_ok=True)
    filename = f"{int(time.time() * 1000)}-{sanitize_filename(original_name)}"
    with open(os.path.join(user_dir, filename), "wb") as f:
        f.write(data)
    return f"{user_id}/{filename}"


def remove_upload(storage_path, upload_folder):
    path = os.path.join(upload_folder, storage_path)
    if os.path.exists(path):
        os.remove(path)


def strip_extension(filename):
    return os.path.splitext(filename or "")[0] or "Untitled Note"
