"""Utilities."""


def underscore_to_camelcase(word: str, initial_capital: bool = False) -> str:
    """Transform a word from underscore_separated to camelCase."""
    words = [x.capitalize() or "_" for x in word.split("_")]
    if not initial_capital:
        words[0] = words[0].lower()

    return "".join(words)
