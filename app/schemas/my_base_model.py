import logging
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class CamelModel(BaseModel):
    """Wire models use camelCase keys; snake_case is accepted on input as well."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class CustomBaseModel(CamelModel):
    """Custom base model for response schemas.
    - pre-process the data before init
    - set the default value if the value is invalid
    """

    def __init__(self, **data: Any) -> None:
        for attr, value in data.items():
            attr_type = None
            me = self.__class__
            while attr_type is None and me != CustomBaseModel:
                field = me.model_fields.get(attr)
                if field is not None:
                    attr_type = field.annotation
                    break
                if me.__base__ is None:
                    break
                me = me.__base__

            # process simple type
            if attr_type in (int, float, str, bool) and value is not None:
                try:  # try to convert the value to the type of the attribute
                    data[attr] = attr_type(value)
                except (TypeError, ValueError):
                    logger.debug("Invalid value for key %s, using field default", attr)
                    data[attr] = me.model_fields[attr].default
        super().__init__(**data)
