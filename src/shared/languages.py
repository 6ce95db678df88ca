"""Language display names for rendition labels."""

from functools import lru_cache

from langcodes import Language, tag_is_valid


@lru_cache(maxsize=256)
def language_display_name(code: str | None, locale: str = "en") -> str:
    """Resolve a BCP 47 language code to a human-readable name.

    Args:
        code: Language code (e.g., 'en', 'pt-BR', 'es-419')
        locale: Language to render the name in

    Returns:
        Display name (e.g., 'English', 'Portuguese (Brazil)'), or an empty
        string when the code is missing or not a registered language

    Example:
        >>> language_display_name("fr")
        'French'
    """
    if not code or not tag_is_valid(code):
        return ""
    language = Language.get(code)
    if not language.is_valid():
        return ""
    return language.display_name(locale)
