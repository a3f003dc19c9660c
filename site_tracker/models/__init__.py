from .entities import (
    CatalogItem,
    ClassificationField,
    ClassificationOption,
    MainInventory,
    PMRActual,
    SheetSource,
    Suggestion,
    SuggestionStatus,
    User,
    UserRole,
)

__all__ = [
    "CatalogItem",
    "ClassificationField",
    "ClassificationOption",
    "MainInventory",
    "PMRActual",
    "SheetSource",
    "Suggestion",
    "SuggestionStatus",
    "User",
    "UserRole",
]
