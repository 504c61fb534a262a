"""Response-shape descriptors sent with structured-output requests."""

from google.genai import types

LINE_ITEM_FIELDS = (
    "category",
    "itemDescription",
    "brand",
    "model",
    "quantity",
    "unitPrice",
    "totalPrice",
    "source",
    "priceSource",
)

QUOTE_SCHEMA = types.Schema(
    type=types.Type.ARRAY,
    items=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "category": types.Schema(type=types.Type.STRING),
            "itemDescription": types.Schema(type=types.Type.STRING),
            "brand": types.Schema(type=types.Type.STRING),
            "model": types.Schema(type=types.Type.STRING),
            "quantity": types.Schema(type=types.Type.NUMBER),
            "unitPrice": types.Schema(type=types.Type.NUMBER),
            "totalPrice": types.Schema(type=types.Type.NUMBER),
            "source": types.Schema(type=types.Type.STRING, enum=["database", "web"]),
            "priceSource": types.Schema(type=types.Type.STRING, enum=["database", "estimated"]),
        },
        required=list(LINE_ITEM_FIELDS),
    ),
)

_STRING_LIST = types.Schema(type=types.Type.ARRAY, items=types.Schema(type=types.Type.STRING))

VALIDATION_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "isValid": types.Schema(type=types.Type.BOOLEAN),
        "warnings": _STRING_LIST,
        "suggestions": _STRING_LIST,
        "missingComponents": _STRING_LIST,
    },
    required=["isValid", "warnings", "suggestions", "missingComponents"],
)
