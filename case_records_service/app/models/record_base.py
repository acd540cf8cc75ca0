from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RecordModel(BaseModel):
    """
    Base for every persisted record. Attributes are snake_case in Python while
    stored and remote JSON use camelCase keys (createdAt, caseId, ...).
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> dict:
        # Unset optional fields are left out entirely rather than stored as null.
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
