from .blocks import (
    BLOCK_FIELDS,
    BLOCK_TYPES,
    IDENTITY_FIELDS,
    describe_block_types,
    get_block_schema,
    validate_rule,
)
