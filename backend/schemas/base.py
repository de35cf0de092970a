from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


# Base configuration for ORM compatibility and camelCase JSON fields.
# Requests may use either camelCase or snake_case; responses are camelCase.
class ORMBase(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )
