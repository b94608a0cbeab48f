from __future__ import annotations

from typing import Annotated, Any, Literal, Mapping, Optional, Union

from pydantic import AfterValidator, BaseModel, ConfigDict

Locale = Literal["en", "pl"]
LOCALES: tuple[str, ...] = ("en", "pl")

class LocalizedInput(BaseModel):
    """Per-locale mapping as it arrives on the wire; either key may be missing."""

    model_config = ConfigDict(extra="ignore")

    en: Optional[str] = None
    pl: Optional[str] = None

# Tagged variant accepted at the boundary: a plain string or a per-locale mapping
LocalizedText = Union[str, LocalizedInput]

class LocaleRecord(BaseModel):
    """Fully normalized text: both locales are always present."""

    model_config = ConfigDict(frozen=True)

    en: str = ""
    pl: str = ""

    def get(self, locale: str) -> str:
        if locale == "pl":
            return self.pl or self.en
        return self.en or self.pl

    def is_blank(self) -> bool:
        return not (self.en or self.pl)

    def to_dict(self) -> dict[str, str]:
        return {"en": self.en, "pl": self.pl}

def normalize_locale_text(value: Any) -> LocaleRecord:
    """
    Normalize a plain string or a (possibly partial) per-locale mapping.

    A string is duplicated into both locales; a blank or missing locale is
    filled from the other one. ``None`` gives an empty record.
    """
    if value is None:
        return LocaleRecord()
    if isinstance(value, LocaleRecord):
        return value
    if isinstance(value, str):
        text = value.strip()
        return LocaleRecord(en=text, pl=text)
    if isinstance(value, LocalizedInput):
        value = value.model_dump()
    if isinstance(value, Mapping):
        en = value.get("en")
        pl = value.get("pl")
        en = en.strip() if isinstance(en, str) else ""
        pl = pl.strip() if isinstance(pl, str) else ""
        if not en and not pl:
            # Legacy records may carry other locales only
            en = pl = next(
                (v.strip() for v in value.values() if isinstance(v, str) and v.strip()),
                "",
            )
        return LocaleRecord(en=en or pl, pl=pl or en)
    raise TypeError(f"cannot normalize {type(value).__name__} into a locale record")

def _require_text(record: LocaleRecord) -> LocaleRecord:
    if record.is_blank():
        raise ValueError("must not be empty")
    return record

# Request fields: the tagged variant in, a LocaleRecord out
LocalizedField = Annotated[LocalizedText, AfterValidator(normalize_locale_text)]
RequiredLocalizedField = Annotated[LocalizedText, AfterValidator(normalize_locale_text), AfterValidator(_require_text)]

def resolve_locale(value: Optional[str], default: str) -> str:
    if value and value.lower() in LOCALES:
        return value.lower()
    return default if default in LOCALES else LOCALES[0]
