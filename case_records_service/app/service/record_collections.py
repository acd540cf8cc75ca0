# Loading and saving typed record collections through the fallback coordinator
import logging
from typing import List, Optional, Sequence, Type, TypeVar

from pydantic import ValidationError

from case_records_service.app.models import RecordModel
from case_records_service.app.observability import serialization_errors_counter
from case_records_service.app.service.exceptions import SerializationError
from case_records_service.infrastructure.database.fallback_coordinator import PersistenceFallbackCoordinator
from case_records_service.infrastructure.database.record_keys import RecordKey

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=RecordModel)


def parse_records(key: str, records: Optional[list], model: Type[ModelT]) -> List[ModelT]:
    """
    Validates a raw stored array into models.

    Raises:
        SerializationError: the payload is not an array or an entry fails validation.
    """
    if records is None:
        return []
    if not isinstance(records, list):
        raise SerializationError(key, f"expected an array, found {type(records).__name__}")
    try:
        return [model.model_validate(record) for record in records]
    except ValidationError as e:
        raise SerializationError(key, f"{model.__name__} validation failed: {e.error_count()} error(s)") from e


async def load_collection(
    coordinator: PersistenceFallbackCoordinator, key: RecordKey, model: Type[ModelT]
) -> List[ModelT]:
    """
    Reads a collection; a corrupt collection is logged and read as empty.
    A remote copy that does not parse is skipped in favour of the local one.
    """
    def validate(records: Optional[list]) -> None:
        parse_records(key.storage_key, records, model)

    try:
        return parse_records(key.storage_key, await coordinator.read(key, validate=validate), model)
    except SerializationError as e:
        logger.error(f"Treating corrupt collection '{key.storage_key}' as empty: {e}", exc_info=True)
        serialization_errors_counter.add(1, {"model": model.__name__})
        return []


async def save_collection(
    coordinator: PersistenceFallbackCoordinator, key: RecordKey, items: Sequence[RecordModel]
) -> None:
    await coordinator.write(key, [item.to_record() for item in items])
