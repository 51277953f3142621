import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from .logging import get_logger

logger = get_logger(__name__)

def atomic_write(target_path: Union[str, Path], data: Union[str, bytes], mode: Optional[int] = None):
    """
    Writes data to a file atomically via a temporary file.
    Prevents a half-written document if the process is interrupted.

    When ``mode`` is given the temporary file is chmod'ed before it replaces
    the target, so the target never exists with looser permissions.
    """
    target = Path(target_path)
    target.parent.mkdir(parents=True, exist_ok=True)

    # Use the same directory as the target to ensure same-device os.replace
    tf = tempfile.NamedTemporaryFile(
        dir=target.parent,
        delete=False,
        mode='w' if isinstance(data, str) else 'wb',
        suffix=".tmp"
    )
    temp_name = tf.name

    try:
        with tf:
            tf.write(data)
        if mode is not None:
            os.chmod(temp_name, mode)
        os.replace(temp_name, target)
    except Exception as e:
        logger.error(f"Failed to perform atomic write to {target}: {e}")
        if os.path.exists(temp_name):
            os.unlink(temp_name)
        raise
