"""
Entity Store

Reads and writes the agent's structured documents (YAML). Loading is lenient
about shape: missing keys take their zero value and unknown keys are ignored.
Whether the result is complete is decided later by validation.
"""

from pathlib import Path
from typing import Type, TypeVar, Union

import yaml
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from ..utils.exceptions import DecodeError, StoreIOError
from ..utils.files import atomic_write
from ..utils.logging import get_logger

logger = get_logger(__name__)

EntityT = TypeVar("EntityT", bound=BaseModel)


def load_entity(model: Type[EntityT], path: Union[str, Path]) -> EntityT:
    """
    Load ``model`` from the YAML document at ``path``.

    Raises:
        StoreIOError: the file cannot be read
        DecodeError: the content is not UTF-8 YAML or does not fit the model
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise StoreIOError(f"Unable to open config file at {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise DecodeError(f"Config file {path} is not valid UTF-8: {e}") from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise DecodeError(f"Unable to deserialize YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise DecodeError(f"Expected a mapping in {path}, got {type(data).__name__}")

    try:
        entity = model.model_validate(data)
    except SchemaError as e:
        raise DecodeError(f"Invalid {model.__name__} document {path}: {e}") from e

    logger.debug(f"Loaded {model.__name__} from {path}")
    return entity


def save_entity(entity: BaseModel, path: Union[str, Path]) -> None:
    """
    Serialize ``entity`` to YAML and replace the document at ``path``.

    Raises:
        StoreIOError: the document could not be written
    """
    path = Path(path)
    content = yaml.safe_dump(entity.model_dump(mode="json"), sort_keys=False)
    try:
        atomic_write(path, content)
    except OSError as e:
        raise StoreIOError(f"Unable to write {type(entity).__name__} to {path}: {e}") from e
    logger.debug(f"Saved {type(entity).__name__} to {path}")
